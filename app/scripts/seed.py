"""Demo-workspace seeder: clients, leads, projects, invoices, templates."""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.models import (
    Client,
    Invoice,
    Lead,
    Project,
    ProposalABTest,
    ProposalTemplate,
    Task,
)
from app.schemas.common import (
    LeadSource,
    LeadStatus,
    ProjectStatus,
    TaskPriority,
    TaskStatus,
)

DEMO_WORKSPACE_ID = UUID("00000000-0000-4000-8000-000000000001")

SOURCES = [s.value for s in LeadSource]
STATUSES = [s.value for s in LeadStatus]
TASK_STATUS_VALUES = [s.value for s in TaskStatus]
PRIORITY_VALUES = [p.value for p in TaskPriority]
EMAIL_DOMAINS = ["acme.io", "gmail.com", "northwind.com", "yahoo.com", "globex.net"]
NOTES = [
    "",
    "Interested in a quick start",
    "Urgent: launch deadline next quarter",
    "Budget approved, ready to sign",
    "Just browsing",
]


async def seed():
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    now = datetime.now(timezone.utc)
    ws = DEMO_WORKSPACE_ID

    async with session_maker() as session:
        print(f"Seeding demo workspace {ws}")

        # Re-runnable: wipe the demo workspace only
        for table in (
            "analytics_events",
            "proposal_ab_tests",
            "proposal_templates",
            "invoices",
            "tasks",
            "projects",
            "leads",
            "clients",
        ):
            await session.execute(
                text(f"DELETE FROM {table} WHERE workspace_id = :ws"), {"ws": ws}
            )
        await session.commit()
        print("Cleared existing demo data")

        # 1. Clients
        clients = []
        for i, name in enumerate(["Acme Corp", "Northwind", "Globex", "Initech"]):
            client = Client(
                workspace_id=ws,
                name=name,
                email=f"billing@{name.lower().replace(' ', '')}.com",
                company=name,
            )
            session.add(client)
            clients.append(client)
        await session.flush()
        print(f"Created {len(clients)} clients")

        # 2. Leads: closed ones form the scoring cohort
        leads = []
        for i in range(60):
            lead = Lead(
                workspace_id=ws,
                name=f"Lead {i + 1}",
                email=f"contact{i}@{EMAIL_DOMAINS[i % len(EMAIL_DOMAINS)]}",
                phone=f"+1555{i:07d}" if i % 3 else None,
                company=["Acme", "Northwind", "", "Globex"][i % 4] or None,
                source=SOURCES[i % len(SOURCES)],
                status=STATUSES[i % len(STATUSES)],
                expected_value=Decimal(5000 + (i % 8) * 9000),
                notes=NOTES[i % len(NOTES)] or None,
                created_at=now - timedelta(days=i),
            )
            session.add(lead)
            leads.append(lead)
        await session.flush()
        print(f"Created {len(leads)} leads")

        # 3. Projects with tasks
        projects = []
        for i, client in enumerate(clients):
            project = Project(
                workspace_id=ws,
                client_id=client.id,
                name=f"{client.name} Website",
                status=ProjectStatus.active.value,
                budget=Decimal(20000 + i * 15000),
                start_date=now - timedelta(days=30 + i * 10),
                end_date=now + timedelta(days=30 - i * 10),
            )
            session.add(project)
            projects.append(project)
        await session.flush()

        task_count = 0
        for p_index, project in enumerate(projects):
            for t in range(3 + p_index * 2):
                session.add(
                    Task(
                        workspace_id=ws,
                        project_id=project.id,
                        title=f"Task {t + 1}",
                        status=TASK_STATUS_VALUES[(t + p_index) % len(TASK_STATUS_VALUES)],
                        priority=PRIORITY_VALUES[t % len(PRIORITY_VALUES)],
                        due_date=now + timedelta(days=(t % 6) - 3),
                        estimated_hours=Decimal(8 + t * 2),
                        actual_hours=Decimal(t * 3) if t else None,
                        created_at=now - timedelta(days=20 - t),
                    )
                )
                task_count += 1
        await session.flush()
        print(f"Created {len(projects)} projects with {task_count} tasks")

        # 4. Invoices: paid ones drive payment-term suggestions
        invoice_count = 0
        for c_index, client in enumerate(clients):
            project = projects[c_index]
            for n in range(4):
                due = now - timedelta(days=90 - n * 20)
                paid = n < 3
                session.add(
                    Invoice(
                        workspace_id=ws,
                        client_id=client.id,
                        project_id=project.id,
                        invoice_number=f"INV-{c_index + 1:02d}{n + 1:02d}",
                        total_amount=Decimal(2500 + n * 1000),
                        status="paid" if paid else "sent",
                        due_date=due,
                        paid_at=due + timedelta(days=c_index * 12 + n) if paid else None,
                    )
                )
                invoice_count += 1
        await session.flush()
        print(f"Created {invoice_count} invoices")

        # 5. Proposal templates and a completed A/B test
        templates = []
        for name, category, rate, usage in [
            ("Website Starter", "website", "0.42", 24),
            ("Healthcare Website", "website", "0.55", 8),
            ("Mobile App Pro", "mobile app", "0.38", 15),
            ("Brand Refresh", "branding", None, 3),
        ]:
            template = ProposalTemplate(
                workspace_id=ws,
                name=name,
                category=category,
                conversion_rate=Decimal(rate) if rate else None,
                usage_count=usage,
            )
            session.add(template)
            templates.append(template)
        await session.flush()

        session.add(
            ProposalABTest(
                workspace_id=ws,
                name="Starter vs Healthcare",
                template_a_id=templates[0].id,
                template_b_id=templates[1].id,
                status="completed",
                results={
                    "template_a": {"views": 120, "conversions": 48, "conversion_rate": 0.4},
                    "template_b": {"views": 118, "conversions": 66, "conversion_rate": 0.56},
                    "statistical_significance": 0.97,
                    "winner": "b",
                },
                end_date=now - timedelta(days=5),
            )
        )
        await session.commit()
        print(f"Created {len(templates)} proposal templates and 1 A/B test")

        lead_cnt = await session.scalar(
            select(func.count()).select_from(Lead).where(Lead.workspace_id == ws)
        )
        print("\nValidation:")
        print(f"  Leads: {lead_cnt}")
        print("Seeding complete")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
