"""
Smoke tests to verify basic imports and functionality.
"""


def test_import_paystream():
    """Test that we can import the main package."""
    import paystream

    assert hasattr(paystream, "__version__")
    assert paystream.__version__ == "0.1.0"


def test_import_core_components():
    """Test that core components can be imported."""
    from paystream import (
        LedgerAdapter,
        Mode,
        PayStreamEngine,
        StreamState,
        TransactionFeed,
        accrued,
    )

    assert PayStreamEngine is not None
    assert StreamState is not None
    assert TransactionFeed is not None
    assert LedgerAdapter is not None
    assert Mode.LIVE.value == "live"
    assert callable(accrued)


def test_public_names_resolve():
    """Every name in __all__ is importable."""
    import paystream
    import paystream.core

    for module in (paystream, paystream.core):
        for name in module.__all__:
            assert hasattr(module, name), name


def test_basic_simulated_session():
    """Test that a default engine reports a claimable balance."""
    from paystream import PayStreamEngine

    with PayStreamEngine() as engine:
        snap = engine.get_snapshot()
        assert snap.active
        assert snap.claimable > 136
        record = engine.request_claim("all")
        assert record.amount >= snap.claimable
