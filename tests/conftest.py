import sys
from pathlib import Path


# Make ``crypto_invest_lab`` and the demo module importable without installation
pkg_src = Path(__file__).resolve().parents[1] / "src"
if str(pkg_src) not in sys.path:
    sys.path.insert(0, str(pkg_src))
