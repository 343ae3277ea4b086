"""
Test configuration and shared fixtures for the job board backend.

The application reads its settings once at import time, so the environment is
prepared here before anything from ``app`` is imported. Every test gets a
fresh in-memory SQLite database with the default roles seeded, and outgoing
email is captured instead of sent.
"""

import os
import tempfile
from typing import AsyncGenerator, Dict, List

os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["ENVIRONMENT"] = "testing"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["WEB_ORIGIN"] = ""
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="job-board-uploads-"))

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.core.database import Base, db_manager
from app.core.permissions import RoleName
from app.core.security import get_password_hash
from app.main import app
from app.models.company import Company, CompanyUser
from app.models.job import EmploymentType, ExperienceLevel, Job, JobStatus
from app.models.profile import JobSeekerProfile
from app.models.user import User
from app.services.auth_service import issue_session
from app.services.email_service import email_service
from app.services.rbac_service import RBACService
from app.services.two_factor import challenge_store

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
DEFAULT_PASSWORD = "Secret123!"


@pytest.fixture
async def engine():
    """Fresh in-memory database per test, bound to the application."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    db_manager.bind(engine)
    async with db_manager.sessionmaker() as session:
        await RBACService(session).seed_defaults()

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for arranging test data."""
    async with db_manager.sessionmaker() as session:
        yield session


@pytest.fixture(autouse=True)
def outbox(monkeypatch) -> List[Dict[str, str]]:
    """Capture outgoing email instead of talking to an SMTP server."""
    sent: List[Dict[str, str]] = []

    async def fake_send_email(to, subject, text, html_body=None):
        sent.append({"to": to, "subject": subject, "text": text, "html": html_body})

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return sent


@pytest.fixture(autouse=True)
def clear_challenges():
    challenge_store.clear()
    yield
    challenge_store.clear()


@pytest.fixture
async def async_client(engine) -> AsyncGenerator[AsyncClient, None]:
    """Async client talking to the app in-process."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(db_session):
    """Factory creating a user with the given roles."""

    async def _make_user(
        email: str,
        roles=(RoleName.JOB_SEEKER,),
        password: str = DEFAULT_PASSWORD,
        first_name: str = "Test",
        last_name: str = "User",
        active: bool = True,
        blocked: bool = False,
    ) -> User:
        user = User(
            email=email.lower(),
            first_name=first_name,
            last_name=last_name,
            password_hash=get_password_hash(password),
            is_active=active,
            email_verified=active,
            is_blocked=blocked,
        )
        db_session.add(user)
        await db_session.flush()
        rbac = RBACService(db_session)
        for role in roles:
            await rbac.assign_role(user.id, RoleName(role).value)
        if RoleName.JOB_SEEKER in roles:
            db_session.add(JobSeekerProfile(user_id=user.id))
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


async def auth_headers_for(db_session: AsyncSession, user: User) -> Dict[str, str]:
    """Bearer header for a user, signed the same way a verified login is."""
    roles = await RBACService(db_session).get_user_roles(user.id)
    session = issue_session(user.id, user.email, user.full_name, roles)
    return {"Authorization": f"Bearer {session['access_token']}"}


@pytest.fixture
async def job_seeker(make_user) -> User:
    return await make_user("seeker@example.com", first_name="Sam", last_name="Seeker")


@pytest.fixture
async def employer(make_user) -> User:
    return await make_user("employer@example.com", roles=(RoleName.EMPLOYER,), first_name="Erin", last_name="Employer")


@pytest.fixture
async def other_employer(make_user) -> User:
    return await make_user("other.employer@example.com", roles=(RoleName.EMPLOYER,), first_name="Olly", last_name="Other")


@pytest.fixture
async def hr_manager(make_user) -> User:
    return await make_user("manager@example.com", roles=(RoleName.HR_MANAGER,), first_name="Hana", last_name="Manager")


@pytest.fixture
async def admin_user(make_user) -> User:
    return await make_user("admin@example.com", roles=(RoleName.ADMIN,), first_name="Ada", last_name="Admin")


@pytest.fixture
async def seeker_headers(db_session, job_seeker) -> Dict[str, str]:
    return await auth_headers_for(db_session, job_seeker)


@pytest.fixture
async def employer_headers(db_session, employer) -> Dict[str, str]:
    return await auth_headers_for(db_session, employer)


@pytest.fixture
async def other_employer_headers(db_session, other_employer) -> Dict[str, str]:
    return await auth_headers_for(db_session, other_employer)


@pytest.fixture
async def manager_headers(db_session, hr_manager) -> Dict[str, str]:
    return await auth_headers_for(db_session, hr_manager)


@pytest.fixture
async def admin_headers(db_session, admin_user) -> Dict[str, str]:
    return await auth_headers_for(db_session, admin_user)


@pytest.fixture
def make_job(db_session):
    """Factory creating a job posting owned by ``employer``."""

    async def _make_job(employer: User, title: str = "Senior Python Developer", **overrides) -> Job:
        values = {
            "employer_id": employer.id,
            "title": title,
            "description": "Build and run backend services.",
            "company": "TechCorp Inc.",
            "location": "Cape Town",
            "category": "Engineering",
            "experience_level": ExperienceLevel.SENIOR,
            "employment_type": EmploymentType.FULL_TIME,
            "salary_min": 100000,
            "salary_max": 150000,
            "status": JobStatus.ACTIVE,
        }
        values.update(overrides)
        job = Job(**values)
        db_session.add(job)
        await db_session.commit()
        await db_session.refresh(job)
        return job

    return _make_job


@pytest.fixture
async def test_job(make_job, employer) -> Job:
    return await make_job(employer)


@pytest.fixture
async def test_company(db_session, hr_manager) -> Company:
    company = Company(name="Acme Corp", industry="Manufacturing", city="Durban", created_by=hr_manager.id)
    db_session.add(company)
    await db_session.flush()
    db_session.add(CompanyUser(company_id=company.id, user_id=hr_manager.id, role="owner"))
    await db_session.commit()
    await db_session.refresh(company)
    return company


@pytest.fixture
def sample_job_data() -> Dict:
    """Request body for creating a job."""
    return {
        "title": "Backend Engineer",
        "description": "Design and build APIs.",
        "company": "TechCorp Inc.",
        "location": "Remote",
        "category": "Engineering",
        "experience_level": "Intermediate",
        "employment_type": "Full-time",
        "remote": True,
        "salary_min": 60000,
        "salary_max": 90000,
        "requirements": ["Python", "SQL"],
    }
