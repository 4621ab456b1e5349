"""
Basic tests to ensure pytest is working correctly.
"""


def test_import_project():
    """Test that project modules can be imported."""
    import tictactoe.client  # noqa: F401
    import tictactoe.server  # noqa: F401
    import tictactoe.shared  # noqa: F401


def test_version():
    """Test that version info is available."""
    from tictactoe import __version__

    assert __version__ == "0.1.0"
    assert isinstance(__version__, str)
