#!/usr/bin/env python
"""Create tables and load sample users and tasks."""
import logging
from datetime import datetime, timedelta

from sqlalchemy import select

from task_api.config import LOG_LEVEL
from task_api.database import create_tables, get_session
from task_api.logging_setup import setup_logging
from task_api.models import Task, TaskPriority, TaskStatus, User
from task_api.schemas.user import UserCreate, UserRead
from task_api.services.stats import get_task_stats
from task_api.services.status import derive_completed_at
from task_api.services.users import create_user, full_name

logger = logging.getLogger("task_api.seed")

SAMPLE_PASSWORD = "password123"

SAMPLE_USERS = [
    ("john_doe", "john@example.com", "John", "Doe"),
    ("jane_smith", "jane@example.com", "Jane", "Smith"),
    ("admin_user", "admin@example.com", "Admin", "User"),
]

# (title, description, status, priority, due in days, owner index, completed days ago)
SAMPLE_TASKS = [
    ("Complete project documentation", "Write comprehensive documentation for the project", "pending", "high", 7, 0, None),
    ("Review code changes", "Review and approve pending pull requests from team members", "pending", "medium", 3, 0, None),
    ("Setup development environment", "Install and configure all necessary tools and dependencies", "completed", "high", -2, 1, 0),
    ("Design database schema", "Create ERD and define database tables with proper relationships", "completed", "high", -5, 1, 4),
    ("Implement user authentication", "Add JWT-based authentication system with login and registration", "pending", "medium", 10, 0, None),
    ("Write unit tests", "Create comprehensive test suite for all API endpoints", "pending", "medium", 14, 1, None),
    ("Setup CI/CD pipeline", "Configure automated testing and deployment pipeline", "pending", "low", 21, 0, None),
    ("Update README file", "Create detailed README with installation instructions", "pending", "medium", 5, 1, None),
    ("Optimize database queries", "Review and optimize slow database queries for better performance", "pending", "low", 30, 0, None),
    ("Add error logging", "Implement comprehensive error logging and monitoring system", "completed", "medium", -1, 1, 0),
    ("Create API documentation", "Generate OpenAPI documentation for all endpoints", "pending", "medium", 12, 0, None),
    ("Security audit", "Perform security review and implement necessary security measures", "pending", "high", 18, 1, None),
    ("Fix responsive design issues", "Resolve UI issues on mobile and tablet devices", "pending", "medium", 8, 2, None),
    ("Implement caching strategy", "Add caching for frequently accessed data", "pending", "low", 25, 0, None),
    ("User feedback analysis", "Analyze user feedback from beta testing phase", "completed", "medium", -3, 2, 1),
]


def seed():
    create_tables()

    with get_session() as session:
        if session.execute(select(User.id)).first() is not None:
            logger.info("Users already exist, skipping seed")
            return

        users = [
            create_user(
                session,
                UserCreate(
                    username=username,
                    email=email,
                    password=SAMPLE_PASSWORD,
                    first_name=first_name,
                    last_name=last_name,
                ),
            )
            for username, email, first_name, last_name in SAMPLE_USERS
        ]
        for user in users:
            logger.info("User %s: %s", full_name(user), UserRead.model_validate(user).model_dump_json())

        now = datetime.utcnow()
        for title, description, status, priority, due_in, owner, done_days_ago in SAMPLE_TASKS:
            task_status = TaskStatus(status)
            completed_at = derive_completed_at(None, task_status, None, now)
            if completed_at is not None and done_days_ago:
                completed_at = now - timedelta(days=done_days_ago)
            session.add(
                Task(
                    title=title,
                    description=description,
                    status=task_status,
                    priority=TaskPriority(priority),
                    due_date=now + timedelta(days=due_in),
                    user_id=users[owner].id,
                    completed_at=completed_at,
                    created_at=now,
                    updated_at=now,
                )
            )
        session.commit()

        stats = get_task_stats(session)
        logger.info(
            "Seeded %d users and %d tasks: pending=%d completed=%d high=%d medium=%d low=%d",
            len(users),
            stats.total_tasks,
            stats.pending_tasks,
            stats.completed_tasks,
            stats.high_priority_tasks,
            stats.medium_priority_tasks,
            stats.low_priority_tasks,
        )


if __name__ == "__main__":
    setup_logging(LOG_LEVEL)
    seed()
