from sqlalchemy.exc import IntegrityError, OperationalError

from tourney_rank.db_errors import is_unique_violation


class _PgError(Exception):
    sqlstate = "23505"


def test_sqlite_unique_message_matches():
    exc = IntegrityError(
        "INSERT INTO player_stats",
        {},
        Exception("UNIQUE constraint failed: player_stats.player_id, player_stats.game_id"),
    )
    assert is_unique_violation(exc)


def test_postgres_sqlstate_matches():
    exc = IntegrityError("INSERT INTO game", {}, _PgError("violates constraint"))
    assert is_unique_violation(exc)


def test_other_errors_do_not_match():
    fk = IntegrityError("INSERT INTO match", {}, Exception("FOREIGN KEY constraint failed"))
    assert not is_unique_violation(fk)
    assert not is_unique_violation(OperationalError("SELECT 1", {}, Exception("locked")))
