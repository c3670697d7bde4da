"""
Seed Sample Schools

Inserts a set of sample schools into the directory. Schools whose email or
contact number is already registered are skipped, so the script can be run
repeatedly.

Usage:
    cd apps/api
    python scripts/seed_schools.py
"""

import asyncio
import logging

from school_directory.core.database import create_engine, create_session_maker
from school_directory.core.exceptions import DuplicateSchoolError
from school_directory.modules.schools.repository import SchoolRepository
from school_directory.modules.schools.service import SchoolService

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)

SAMPLE_SCHOOLS = [
    {
        "name": "Delhi Public School",
        "address": "Mathura Road, New Delhi - 110076",
        "city": "New Delhi",
        "state": "Delhi",
        "contact": "9876543210",
        "email": "info@dpsdelhi.com",
    },
    {
        "name": "Kendriya Vidyalaya No. 1",
        "address": "Andrews Ganj, New Delhi - 110049",
        "city": "New Delhi",
        "state": "Delhi",
        "contact": "9876543211",
        "email": "kv1delhi@kvs.gov.in",
    },
    {
        "name": "Ryan International School",
        "address": "Sector 25, Rohini, Delhi - 110085",
        "city": "New Delhi",
        "state": "Delhi",
        "contact": "9876543212",
        "email": "admin@ryaninternational.com",
    },
    {
        "name": "The Shri Ram School",
        "address": "Moulsari Avenue, DLF Phase 3, Gurgaon - 122002",
        "city": "Gurgaon",
        "state": "Haryana",
        "contact": "9876543213",
        "email": "info@tsrs.org",
    },
    {
        "name": "DAV Public School",
        "address": "Sector 14, Faridabad - 121007",
        "city": "Faridabad",
        "state": "Haryana",
        "contact": "9876543214",
        "email": "dav.sector14@gmail.com",
    },
    {
        "name": "Birla Public School",
        "address": "Kalyan Vihar, Delhi - 110009",
        "city": "New Delhi",
        "state": "Delhi",
        "contact": "9876543215",
        "email": "info@birlapublicschool.com",
    },
    {
        "name": "Modern School",
        "address": "Barakhamba Road, New Delhi - 110001",
        "city": "New Delhi",
        "state": "Delhi",
        "contact": "9876543216",
        "email": "principal@modernschool.net",
    },
    {
        "name": "St. Columba's School",
        "address": "Ashok Place, New Delhi - 110001",
        "city": "New Delhi",
        "state": "Delhi",
        "contact": "9876543217",
        "email": "office@stcolumbas.org",
    },
]


async def seed_schools() -> None:
    """Insert the sample schools that are not already present."""
    engine = create_engine()
    session_maker = create_session_maker(engine)

    created = skipped = 0
    async with session_maker() as db:
        service = SchoolService(SchoolRepository(db))
        for school in SAMPLE_SCHOOLS:
            try:
                school_id = await service.create_school(school)
            except DuplicateSchoolError as e:
                logger.info(f"Skipping {school['name']}: {e.field} already registered")
                skipped += 1
                continue
            logger.info(f"Created {school['name']} ({school_id})")
            created += 1

    await engine.dispose()
    logger.info(f"Done: {created} created, {skipped} skipped")


if __name__ == "__main__":
    asyncio.run(seed_schools())
