#!/usr/bin/env python3
"""
Seed the database with demo games, courses and lessons
"""

import asyncio
import sys
from pathlib import Path

from funedu.config import Settings
from funedu.core.database.database_manager import DatabaseManager
from funedu.core.services.course_service import CourseService
from funedu.core.services.dashboard_service import DashboardService
from funedu.core.services.game_service import GameService
from funedu.leveling import LevelingEngine
from funedu.scoring import ScoringEngine

DEMO_COURSES = [
    {
        "title": "Introduction to Mathematics",
        "description": "Learn the fundamentals of mathematics with interactive lessons",
        "category": "Mathematics",
        "difficulty": "beginner",
        "duration": 120,
        "lessons": [
            ("Numbers and Operations", "Learn about basic number operations and their properties.", 10, 30),
            ("Fractions and Decimals", "Understanding fractions, decimals, and their relationships.", 15, 40),
            ("Basic Algebra", "Introduction to variables, expressions, and simple equations.", 20, 50),
        ],
    },
    {
        "title": "Creative Writing Workshop",
        "description": "Develop your writing skills through creative exercises and storytelling",
        "category": "Language Arts",
        "difficulty": "intermediate",
        "duration": 90,
        "lessons": [
            ("Story Structure", "Learn the basic elements of story structure.", 12, 30),
            ("Character Development", "Create compelling characters that drive your stories forward.", 18, 35),
            ("Dialogue Writing", "Master the art of writing realistic and engaging dialogue.", 15, 25),
        ],
    },
    {
        "title": "Basic Science Exploration",
        "description": "Discover the wonders of science through hands-on experiments",
        "category": "Science",
        "difficulty": "beginner",
        "duration": 150,
        "lessons": [
            ("Scientific Method", "Learn how scientists ask questions and find answers.", 15, 40),
            ("Properties of Matter", "Explore the different states of matter.", 20, 45),
            ("Simple Machines", "Understand how simple machines make work easier.", 25, 35),
            ("Plants and Animals", "Learn about living things and their needs.", 18, 30),
        ],
    },
]


def seed_courses(db_manager: DatabaseManager) -> list[int]:
    """Create the demo courses with their lessons"""
    course_ids = []
    for course in DEMO_COURSES:
        course_id = db_manager.course_repo.create_course(
            title=course["title"],
            category=course["category"],
            description=course["description"],
            difficulty=course["difficulty"],
            duration=course["duration"],
            is_published=True,
        )
        for order, (title, content, points, duration) in enumerate(course["lessons"], start=1):
            db_manager.course_repo.create_lesson(
                course_id,
                title,
                points=points,
                lesson_order=order,
                content=content,
                duration=duration,
            )
        course_ids.append(course_id)
        print(f"  📚 {course['title']}: {len(course['lessons'])} lessons")
    return course_ids


async def seed_demo_user(
    db_manager: DatabaseManager,
    course_service: CourseService,
    game_service: GameService,
    telegram_id: int,
    course_ids: list[int],
) -> None:
    """Give a demo user some progress through the regular service calls"""
    db_manager.get_or_create_user(telegram_id, "Demo Student")

    first, second = course_ids[0], course_ids[1]
    course_service.enroll(telegram_id, first)
    course_service.enroll(telegram_id, second)

    for lesson in db_manager.course_repo.get_course_lessons(first)[:2]:
        await course_service.complete_lesson(telegram_id, first, lesson["id"])
    lesson = db_manager.course_repo.get_course_lessons(second)[0]
    await course_service.complete_lesson(telegram_id, second, lesson["id"])

    games = sorted(game_service.get_all_games(), key=lambda game: game["id"])
    if len(games) >= 2:
        await game_service.submit_score(telegram_id, games[0]["id"], 85)
        await game_service.submit_score(telegram_id, games[1]["id"], 92)

    db_manager.user_repo.add_achievement(
        telegram_id, "First Steps", "Complete your first lesson", "🎉", 5
    )
    print(f"  👤 Demo progress created for user {telegram_id}")


def seed_data(db_path: str, demo_telegram_id: int | None = None) -> bool:
    """Seed games, courses and optionally a demo user"""
    try:
        settings = Settings(telegram_bot_token="seed", database_url=f"sqlite:///{db_path}")
        db_manager = DatabaseManager(db_path)
        db_manager.init_database()
        print("🏗️  Database schema initialized")

        dashboard_service = DashboardService(db_manager, LevelingEngine(settings))
        course_service = CourseService(db_manager, dashboard_service, settings=settings)
        game_service = GameService(
            db_manager,
            dashboard_service,
            scoring_engine=ScoringEngine(settings),
            settings=settings,
        )

        created = game_service.create_initial_games()
        print(f"🎮 Games created: {created}")

        if db_manager.course_repo.count_courses() > 0:
            print("📚 Courses already exist, skipping")
            return True

        course_ids = seed_courses(db_manager)

        if demo_telegram_id is not None:
            asyncio.run(
                seed_demo_user(
                    db_manager, course_service, game_service, demo_telegram_id, course_ids
                )
            )

        return True

    except Exception as e:
        print(f"❌ Seed failed: {e}")
        import traceback
        traceback.print_exc()
        return False


def main():
    """Main seed function"""
    if len(sys.argv) not in (2, 3):
        print("Usage: python seed_data.py <database_path> [demo_telegram_id]")
        print("Example: python seed_data.py data/funedu.db 123456789")
        sys.exit(1)

    db_path = sys.argv[1]
    demo_telegram_id = int(sys.argv[2]) if len(sys.argv) == 3 else None

    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    print(f"🌱 Seeding {db_path}")

    if seed_data(db_path, demo_telegram_id):
        print("🎉 Database seeded successfully!")
        sys.exit(0)
    else:
        print("💥 Seed failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
