"""
Bloxd item translation checker.

Mines the canonical item list out of the game's bundled JavaScript,
compares it with the community translation dictionary and reports what
is still missing.

Usage:
    from itemcheck.session import CheckerSession

    session = CheckerSession()
    session.refresh()
    report = session.report()
    print(f"{report.coverage}% ({report.missing_count} missing)")

Command line:
    python -m itemcheck.check report
"""

__version__ = "1.0.0"
