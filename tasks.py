from invoke import task
from pathlib import Path

# Get project root directory
PROJECT_ROOT = Path(__file__).parent.absolute()

TEST_SETTINGS = "scorebook.test_settings"


def project_relative(path):
    """Convert a relative path to an absolute path relative to the project root."""
    return str(PROJECT_ROOT / path)


@task
def update(c):
    """Update all dependencies to their latest versions."""
    c.run(f"pip install --upgrade -e {project_relative('.')}[test,dev]")


@task
def up(c):
    """Alias for update - update all dependencies to their latest versions."""
    update(c)


@task
def status(c):
    """Check git status of the repository."""
    c.run("git status")


@task
def st(c):
    """Alias for status - check git status of the repository."""
    status(c)


@task
def test(c, path=None):
    """Run the test suite. Optionally specify a specific test path."""
    target = path or "scorebook"
    c.run(
        f"django-admin test {target} --settings={TEST_SETTINGS} "
        f"--pythonpath {project_relative('.')}"
    )


@task
def pytest(c, path=None):
    """Run the test suite with pytest."""
    target = path or project_relative("scorebook")
    c.run(f"pytest {target}")
