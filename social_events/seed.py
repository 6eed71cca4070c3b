"""Populate the database with sample events and users.

Run with ``python -m social_events.seed`` (or the ``social-events-seed``
script). Existing events and users are removed first; joins are left alone.
"""
import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, List

from social_events.core.config import get_settings
from social_events.core.logging_config import setup_logging
from social_events.services.database_service import MongoDBService
from social_events.services.event_query import utcnow

logger = logging.getLogger(__name__)

# (title, description, type, thumbnail, location, days from now, hour UTC)
SAMPLE_EVENTS = [
    ("Community Garden Workshop",
     "Learn sustainable gardening practices and community building. Join us for hands-on experience in urban farming.",
     "Community", "https://images.unsplash.com/photo-1416879595882-3373a0480b5b?w=400",
     "Downtown Community Center, New York", 14, 10),
    ("STEM Education Conference",
     "Annual conference featuring the latest in science, technology, engineering, and mathematics education.",
     "Education", "https://images.unsplash.com/photo-1522202176988-66273c2fd55f?w=400",
     "Tech University Campus, Boston", 35, 9),
    ("Mental Health Awareness Seminar",
     "Expert-led discussion on mental wellness, stress management, and community support systems.",
     "Health", "https://images.unsplash.com/photo-1559757148-5c350d0d3c56?w=400",
     "Wellness Center, Los Angeles", 56, 14),
    ("Environmental Conservation Summit",
     "Global leaders discuss climate action, sustainable development, and environmental protection strategies.",
     "Environment", "https://images.unsplash.com/photo-1569163139394-de4e4f43e4e3?w=400",
     "Green Conference Hall, Seattle", 77, 8),
    ("Neighborhood Cleanup Drive",
     "Community volunteers unite to clean up local parks and promote environmental responsibility.",
     "Community", "https://images.unsplash.com/photo-1558618666-fcd25c85cd64?w=400",
     "Riverside Park, Chicago", 98, 7),
    ("Digital Literacy Workshop",
     "Free workshop teaching essential computer skills, online safety, and digital communication.",
     "Education", "https://images.unsplash.com/photo-1434030216411-0b793f4b4173?w=400",
     "Public Library, San Francisco", 126, 13),
    ("Yoga and Mindfulness Retreat",
     "Weekend retreat focusing on holistic health, meditation, and personal wellness practices.",
     "Health", "https://images.unsplash.com/photo-1544367567-0f2fcb009e0b?w=400",
     "Mountain Wellness Resort, Colorado", 154, 6),
    ("Climate Change Awareness Campaign",
     "Interactive campaign raising awareness about climate change impacts and sustainable solutions.",
     "Environment", "https://images.unsplash.com/photo-1569163139394-de4e4f43e4e3?w=400",
     "Environmental Center, Portland", 177, 10),
    ("Community Art Exhibition",
     "Showcase of local artists' work celebrating cultural diversity and creative expression.",
     "Community", "https://images.unsplash.com/photo-1578662996442-48f60103fc96?w=400",
     "Community Arts Center, Miami", 201, 18),
]

SAMPLE_ORGANIZERS = [
    "organizer@community.org",
    "edu@stemconf.com",
    "health@wellness.org",
    "environment@greenearth.com",
    "cleanup@neighborhood.org",
    "digital@literacy.org",
    "yoga@mindfulretreat.com",
    "climate@awareness.org",
    "art@communitycenter.com",
]

SAMPLE_USERS = [
    {"email": "john@example.com", "displayName": "John Doe", "photoURL": "", "role": "user"},
    {"email": "jane@example.com", "displayName": "Jane Smith", "photoURL": "", "role": "organizer"},
    {"email": "admin@socialevents.com", "displayName": "Admin User", "photoURL": "", "role": "admin"},
]


def build_sample_events() -> List[Dict[str, Any]]:
    now = utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    events = []
    for (title, description, event_type, thumbnail, location, days, hour), creator in zip(
        SAMPLE_EVENTS, SAMPLE_ORGANIZERS
    ):
        events.append({
            "title": title,
            "description": description,
            "eventType": event_type,
            "thumbnail": thumbnail,
            "images": [thumbnail],
            "location": location,
            "eventDate": today + timedelta(days=days, hours=hour),
            "creatorEmail": creator,
            "createdAt": now,
        })
    return events


async def seed_database(db_service: MongoDBService) -> None:
    logger.info("Seeding database...")
    await db_service.events.delete_many({})
    await db_service.users.delete_many({})

    result = await db_service.events.insert_many(build_sample_events())
    logger.info("Inserted %d events", len(result.inserted_ids))

    now = utcnow()
    for user in SAMPLE_USERS:
        await db_service.upsert_user(
            user["email"],
            {
                "displayName": user["displayName"],
                "photoURL": user["photoURL"],
                "role": user["role"],
                "lastLogin": now,
            },
            {"createdAt": now, "isBlocked": False},
        )
    logger.info("Upserted %d users", len(SAMPLE_USERS))
    logger.info("Database seeded successfully!")


async def _run() -> None:
    db_service = MongoDBService.from_settings(get_settings())
    try:
        await seed_database(db_service)
    except Exception:
        logger.exception("Error seeding database")
        raise
    finally:
        db_service.close()


def main() -> None:
    setup_logging()
    asyncio.run(_run())


if __name__ == "__main__":
    main()
