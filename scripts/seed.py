import asyncio
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]

DEMO_NOTES = [
    ("Getting started with NoteHub", "Workspaces group notes for a company.", ["guide", "onboarding"], "PUBLIC", "PUBLISHED"),
    ("Release checklist", "1. Freeze\n2. Tag\n3. Ship", ["process"], "PUBLIC", "DRAFT"),
    ("Team retro notes", "What went well, what did not.", ["retro"], "PRIVATE", "PUBLISHED"),
]


async def seed():
    sys.path.insert(0, str(BACKEND_ROOT))

    from app import database  # type: ignore
    from app.security import Principal, create_access_token  # type: ignore
    from app.services.notes import create_note  # type: ignore
    from models.company import Company  # type: ignore
    from models.notes import NoteStatus, NoteType  # type: ignore
    from models.user import User, UserRole  # type: ignore
    from models.workspace import Workspace  # type: ignore
    from schemas.notes import NoteCreate  # type: ignore

    await database.create_tables()
    async with database.AsyncSessionLocal() as session:
        company = Company(name="Demo Company")
        session.add(company)
        await session.flush()
        owner = User(
            email="owner@demo.notehub",
            first_name="Demo",
            last_name="Owner",
            role=UserRole.OWNER,
            company_id=company.id,
        )
        session.add(owner)
        await session.flush()
        workspace = Workspace(name="General", slug="general", company_id=company.id)
        session.add(workspace)
        await session.commit()

        actor = Principal(user_id=owner.id, email=owner.email, company_id=company.id, role=UserRole.OWNER)
        for title, content, tags, note_type, status in DEMO_NOTES:
            await create_note(
                session,
                actor,
                NoteCreate(
                    title=title,
                    content=content,
                    workspace_id=workspace.id,
                    tags=tags,
                    type=NoteType(note_type),
                    status=NoteStatus(status),
                ),
            )

        token = create_access_token(
            user_id=owner.id, email=owner.email, company_id=company.id, role=UserRole.OWNER
        )
    await database.dispose_engine()
    return token


if __name__ == '__main__':
    token = asyncio.run(seed())
    print('Seeded demo company, owner, workspace and notes.')
    print(f'Owner token: {token}')
