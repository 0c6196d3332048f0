# tests/repositories/test_confirmation_sequence_repository.py
from unittest.mock import patch

import pytest

from podcast_studio.core.exceptions import RepositoryException
from podcast_studio.models import ConfirmationSequence
from podcast_studio.repositories.confirmation_sequence_repository import (
    ConfirmationSequenceRepository,
)


@pytest.fixture
def repository(db):
    return ConfirmationSequenceRepository(db)


def test_first_value_of_a_year_is_one(repository, db):
    assert repository.current_value(2025) is None
    assert repository.next_value(2025) == 1
    db.commit()
    assert repository.current_value(2025) == 1


def test_values_strictly_increase(repository, db):
    values = [repository.next_value(2025) for _ in range(5)]
    db.commit()
    assert values == [1, 2, 3, 4, 5]


def test_years_are_independent(repository, db):
    assert repository.next_value(2025) == 1
    assert repository.next_value(2025) == 2
    assert repository.next_value(2026) == 1
    db.commit()
    assert db.get(ConfirmationSequence, 2025).last_value == 2
    assert db.get(ConfirmationSequence, 2026).last_value == 1


def test_rolled_back_value_is_not_persisted(repository, db):
    repository.next_value(2025)
    db.commit()
    repository.next_value(2025)
    db.rollback()
    assert repository.next_value(2025) == 2


def test_unsupported_dialect_raises(repository):
    with patch.object(
        ConfirmationSequenceRepository, "dialect_name", new=property(lambda self: "mysql")
    ):
        with pytest.raises(RepositoryException):
            repository.next_value(2025)
