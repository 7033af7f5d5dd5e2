"""Shared fixtures for the occurrence cleaning tests."""

import pandas as pd
import pytest

from qc.family import FamilySynonyms


class FakeResolver:
    """In-memory name resolver recording every call.

    ``answers`` are used for synonym-replacing queries and ``exact`` for
    queries made with ``replace_synonyms=False``.
    """

    def __init__(self, answers=None, exact=None, error=None):
        self.answers = answers or {}
        self.exact = exact or {}
        self.error = error
        self.calls = []

    def resolve(self, query, fuzzy=True, replace_synonyms=True):
        self.calls.append((query, fuzzy, replace_synonyms))
        if self.error is not None:
            raise self.error
        if replace_synonyms:
            return self.answers.get(query)
        return self.exact.get(query)


@pytest.fixture
def make_resolver():
    """Factory for FakeResolver instances."""
    return FakeResolver


@pytest.fixture
def synonyms():
    """Small family dictionary covering the names used in the tests."""
    return FamilySynonyms(
        {
            "Flacourtiaceae": "Salicaceae",
            "Salicaceae": "Salicaceae",
            "Ulmaceae": "Ulmaceae",
            "Cannabaceae": "Cannabaceae",
            "Leguminosae": "Fabaceae",
            "Fabaceae": "Fabaceae",
            "Clusiaceae": "Clusiaceae",
            "Vivianiaceae": "Francoaceae",
            "Francoaceae": "Francoaceae",
        }
    )


@pytest.fixture
def occurrences():
    """Occurrence table with synonym and blank families sharing two genera."""
    return pd.DataFrame(
        {
            "family": ["Ulmaceae", "Cannabaceae", "Salicaceae", "Flacourtiaceae", "Vivianiaceae", ""],
            "genus": ["Trema", "Trema", "Casearia", "Casearia", "Casearia", ""],
            "scientificName": [
                "Trema micrantha",
                "Trema micrantha",
                "Casearia sylvestris",
                "Casearia sylvestris",
                "Casearia sylvestris",
                "Casearia sylvestris",
            ],
        }
    )
