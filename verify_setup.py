"""
Setup verification script for the academic CV backend.
Checks the interpreter, installed packages, configuration, database and
PDF renderer before the server is started.
"""
import asyncio
import sys
import os
from typing import List, Tuple

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"


def print_status(message: str, status: bool):
    """Print colored status message."""
    symbol = f"{GREEN}✓{RESET}" if status else f"{RED}✗{RESET}"
    print(f"{symbol} {message}")


async def check_python_version() -> bool:
    """Check Python version is 3.10+."""
    version = sys.version_info
    if version.major == 3 and version.minor >= 10:
        print_status(f"Python version: {version.major}.{version.minor}.{version.micro}", True)
        return True
    else:
        print_status(f"Python version {version.major}.{version.minor} (requires 3.10+)", False)
        return False


async def check_dependencies() -> bool:
    """Check if required packages are installed."""
    required_packages = [
        "fastapi",
        "uvicorn",
        "sqlalchemy",
        "asyncpg",
        "pydantic_settings",
        "jose",
        "passlib",
        "bcrypt",
        "jinja2",
        "alembic",
    ]

    all_installed = True
    for package in required_packages:
        try:
            __import__(package)
            print_status(f"Package '{package}' installed", True)
        except ImportError:
            print_status(f"Package '{package}' missing", False)
            all_installed = False

    return all_installed


async def check_env_file() -> bool:
    """Check the .env file exists and the token secret was changed."""
    if not os.path.exists(".env"):
        print_status(".env file missing (defaults will be used)", False)
        return False
    print_status(".env file exists", True)

    from app.config import settings

    secret_ok = settings.JWT_SECRET != "change-this-secret-in-production"
    print_status(f"JWT_SECRET {'set' if secret_ok else 'still the default value'}", secret_ok)
    return secret_ok


async def check_database() -> bool:
    """Check the configured database answers and the CV tables exist."""
    try:
        from sqlalchemy import inspect, text

        from app.database import engine

        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        await engine.dispose()

        print_status("Database connection successful", True)
        expected = {
            "users", "publications", "teaching_classes",
            "projects", "teaching_innovations", "final_works",
        }
        missing = sorted(expected - set(tables))
        if missing:
            print_status(f"Missing tables: {', '.join(missing)}", False)
            print(f"  {YELLOW}Run: alembic upgrade head{RESET}")
            return False
        print_status("All CV tables present", True)
        return True

    except Exception as e:
        print_status(f"Database connection failed: {str(e)}", False)
        print(f"  {YELLOW}Check DATABASE_URL in .env{RESET}")
        return False


async def check_pdf_renderer() -> bool:
    """Check WeasyPrint and its native libraries can produce a PDF."""
    try:
        from app.services.curriculum_pdf import CurriculumPDFService

        version = CurriculumPDFService().renderer_version()
        print_status(f"WeasyPrint {version} renders PDFs", True)
        return True
    except Exception as e:
        print_status(f"PDF renderer unavailable: {str(e)}", False)
        print(f"  {YELLOW}Install Pango: https://doc.courtbouillon.org/weasyprint/stable/first_steps.html{RESET}")
        return False


async def main():
    """Run all verification checks."""
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}Academic CV Backend - Setup Verification{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

    checks: List[Tuple[str, callable]] = [
        ("Python Version", check_python_version),
        ("Dependencies", check_dependencies),
        ("Environment File", check_env_file),
        ("Database", check_database),
        ("PDF Renderer", check_pdf_renderer),
    ]

    results = []

    for check_name, check_func in checks:
        print(f"\n{BLUE}Checking {check_name}...{RESET}")
        try:
            result = await check_func()
            results.append(result)
        except Exception as e:
            print_status(f"Error during check: {str(e)}", False)
            results.append(False)

    # Summary
    print(f"\n{BLUE}{'='*60}{RESET}")
    passed = sum(results)
    total = len(results)

    if passed == total:
        print(f"{GREEN}✓ All checks passed! ({passed}/{total}){RESET}")
        print(f"\n{GREEN}You're ready to run the backend:{RESET}")
        print(f"  python -m app.main")
        print(f"  or")
        print(f"  uvicorn app.main:app --reload --port 5000")
    else:
        print(f"{RED}✗ Some checks failed ({passed}/{total} passed){RESET}")
        print(f"\n{YELLOW}Please fix the issues above before running the backend.{RESET}")
        sys.exit(1)

    print(f"{BLUE}{'='*60}{RESET}\n")


if __name__ == "__main__":
    asyncio.run(main())
