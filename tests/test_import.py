"""Basic import tests to verify package structure."""


def test_import_mpnbody():
    """Verify main package imports."""
    import mpnbody
    assert mpnbody.__version__ == "0.1.0"


def test_import_core():
    """Verify core module structure exists."""
    from mpnbody import core
    assert hasattr(core, "Leader")
    assert hasattr(core, "Worker")


def test_import_analysis():
    """Verify analysis module structure exists."""
    from mpnbody import analysis
    assert hasattr(analysis, "__doc__")


def test_import_viz():
    """Verify viz module structure exists."""
    from mpnbody import viz
    assert hasattr(viz, "plot_trajectories")
