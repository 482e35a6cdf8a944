"""Seed a demo school with a pending subscription into the SQL store."""

import argparse

from dotenv import load_dotenv

from eduportal.config import Settings
from eduportal.schemas.billing import SubscriptionCreate
from eduportal.schemas.school import SchoolCreate
from eduportal.services.container import build_services


def main() -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Seed a demo school and subscription.")
    parser.add_argument("--email", default="demo@school.example", help="School email.")
    parser.add_argument("--students", type=int, default=100, help="Student count.")
    args = parser.parse_args()

    services = build_services(Settings(store_backend="sql"))
    try:
        school = services.store.get_school_by_email(args.email)
        if school is None:
            school = services.schools.register(
                SchoolCreate(
                    name="Demo Public School",
                    email=args.email,
                    phone="9999999999",
                    address="1 Demo Road",
                    student_count=args.students,
                )
            )
        subscription = services.subscriptions.create(
            SubscriptionCreate(
                school_id=school.id,
                product_type="parikshanai-questionbank",
                student_count=args.students,
            )
        )
        print(f"School {school.id} subscription {subscription.id} seeded.")
    finally:
        services.close()


if __name__ == "__main__":
    main()
