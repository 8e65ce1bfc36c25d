"""Tests for the one-download-per-seed ledger."""

import threading

import pytest

from downloads.ledger import DownloadLedger, SeedAlreadyDownloaded

pytestmark = pytest.mark.smoke


def test_unknown_seed_is_available():
    result = DownloadLedger().check("fresh")
    assert result == {
        "available": True,
        "message": "This design is available for download",
    }


def test_record_then_check():
    ledger = DownloadLedger()
    record = ledger.record("taken", "Wa11et", "sig123")
    assert record.seed_text == "taken"
    assert len(ledger) == 1

    result = ledger.check("taken")
    assert result["available"] is False
    assert result["downloaded_by"] == "Wa11et"
    assert result["downloaded_at"] == record.timestamp.isoformat()


def test_duplicate_record_rejected():
    ledger = DownloadLedger()
    ledger.record("once", "a", "sig1")
    with pytest.raises(SeedAlreadyDownloaded) as info:
        ledger.record("once", "b", "sig2")
    assert info.value.seed_text == "once"
    assert ledger.check("once")["downloaded_by"] == "a"


def test_seed_text_is_case_sensitive():
    ledger = DownloadLedger()
    ledger.record("Seed", "a", "sig")
    assert ledger.check("seed")["available"] is True


@pytest.mark.parametrize(
    "seed, wallet, sig",
    [("", "w", "s"), ("x", "", "s"), ("x", "w", "")],
)
def test_missing_fields_rejected(seed, wallet, sig):
    with pytest.raises(ValueError, match="Missing required fields"):
        DownloadLedger().record(seed, wallet, sig)


def test_long_seed_rejected():
    with pytest.raises(ValueError, match="too long"):
        DownloadLedger().record("x" * 33, "w", "s")


@pytest.mark.parametrize("seed", ["", "x" * 33, "😀" * 17])
def test_check_rejects_invalid_seed(seed):
    with pytest.raises(ValueError, match="Invalid seed text"):
        DownloadLedger().check(seed)


def test_concurrent_records_single_winner():
    ledger = DownloadLedger()
    winners = []
    losers = []

    def attempt(i):
        try:
            ledger.record("contested", f"wallet{i}", f"sig{i}")
            winners.append(i)
        except SeedAlreadyDownloaded:
            losers.append(i)

    threads = [threading.Thread(target=attempt, args=(i,)) for i in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(winners) == 1
    assert len(losers) == 15
    assert len(ledger) == 1
