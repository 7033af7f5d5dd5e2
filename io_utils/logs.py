import logging
from pathlib import Path


def setup_logging(output_dir: Path, level: str = "INFO") -> None:
    """Configure simple file and console logging."""
    output_dir.mkdir(parents=True, exist_ok=True)
    log_path = output_dir / "run.log"
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_path, mode="w"),
        ],
        force=True,
    )
    # Silence noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
