# noxfile.py
from nox_poetry import Session, session

PY_VERSIONS = ["3.11", "3.12"]
SOURCES = ("src", "tests", "noxfile.py")


@session(python=PY_VERSIONS[0])
def format(session: Session) -> None:
    """Auto-format code."""
    session.install("black", "isort")
    session.run("isort", *SOURCES)
    session.run("black", *SOURCES)


@session(python=PY_VERSIONS[0])
def lint(session: Session) -> None:
    """Check formatting and lint without rewriting anything."""
    session.install("ruff", "black", "isort")
    session.run("ruff", "check", *SOURCES)
    session.run("isort", "--check-only", *SOURCES)
    session.run("black", "--check", *SOURCES)


@session(python=PY_VERSIONS[0])
def typecheck_mypy(session: Session) -> None:
    session.install("mypy", "pytest", "pandas-stubs~=2.2")
    session.install(".")
    session.run("mypy", "--config-file", "pyproject.toml")


@session(python=PY_VERSIONS)
def tests(session: Session) -> None:
    """Run the test suite against the installed package."""
    session.install(".", "pytest")
    session.run("pytest", "-q", *session.posargs)


@session(python=PY_VERSIONS[0])
def example(session: Session) -> None:
    """Generate a schedule for the bundled example request via the CLI."""
    session.install(".")
    session.run(
        "pharmacy-rostering",
        "src/example_request.json",
        "-o",
        "outputs/example_schedule.json",
        "--report",
    )
