import nox


@nox.session(python=["3.10", "3.11", "3.12"])
def test(session: nox.Session) -> None:
    session.install(".[develop]")
    session.run("pytest", "tests", *session.posargs)


@nox.session(python="3")
def lint(session: nox.Session) -> None:
    session.install(".[develop]")
    session.run("black", "--check", "csvfeed", "tests")
    session.run("isort", "--check-only", "csvfeed", "tests")
