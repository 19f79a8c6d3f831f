from importlib.metadata import PackageNotFoundError, version

# Installed distribution version; source checkouts fall back to a VERSION file
# at the repository root if present, else a safe default.
try:
    __version__ = version("sankey-flow")
except PackageNotFoundError:  # not installed yet
    _v = None
    try:
        from pathlib import Path

        root = Path(__file__).resolve().parents[2]
        vf = root / "VERSION"
        if vf.is_file():
            _v = vf.read_text(encoding="utf-8").strip()
    except OSError:
        _v = None
    __version__ = _v or "0.0.0"
