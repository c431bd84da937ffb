import logging
import random
from datetime import datetime, timedelta

from auth import hash_password
from database import db, ensure_indexes

logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    {"name": "John Smith", "email": "john@example.com", "role": "admin"},
    {"name": "Alice Johnson", "email": "alice@example.com", "role": "user"},
    {"name": "Bob Wilson", "email": "bob@example.com", "role": "user"},
    {"name": "Sarah Davis", "email": "sarah@example.com", "role": "user"},
    {"name": "Mike Brown", "email": "mike@example.com", "role": "user"},
]
SAMPLE_PASSWORD = "password123"

SAMPLE_CARS = [
    {"brand": "Toyota", "model": "Camry", "year": 2020, "price": 25000, "color": "Silver", "mileage": 35000,
     "description": "Well-maintained family sedan with excellent fuel economy."},
    {"brand": "Honda", "model": "Civic", "year": 2019, "price": 22000, "color": "Blue", "mileage": 42000,
     "description": "Reliable compact car perfect for city driving."},
    {"brand": "BMW", "model": "X5", "year": 2021, "price": 55000, "color": "Black", "mileage": 18000,
     "description": "Luxury SUV with advanced technology and premium features."},
    {"brand": "Ford", "model": "F-150", "year": 2020, "price": 45000, "color": "White", "mileage": 28000,
     "description": "Powerful pickup truck ideal for work and recreation."},
    {"brand": "Tesla", "model": "Model 3", "year": 2022, "price": 48000, "color": "Red", "mileage": 12000,
     "description": "Electric vehicle with cutting-edge technology and autopilot features."},
    {"brand": "Mercedes-Benz", "model": "C-Class", "year": 2021, "price": 42000, "color": "Gray", "mileage": 15000,
     "description": "Luxury sedan with premium interior and smooth ride."},
    {"brand": "Nissan", "model": "Altima", "year": 2019, "price": 19000, "color": "White", "mileage": 38000,
     "description": "Comfortable midsize sedan with good reliability."},
    {"brand": "Audi", "model": "A4", "year": 2020, "price": 38000, "color": "Black", "mileage": 22000,
     "description": "German engineering meets luxury and performance."},
]

SAMPLE_SERVICES = [
    ("Regular oil change and filter replacement", 75.00, "maintenance", "Quick Lube Express"),
    ("Brake pad replacement and rotor resurfacing", 350.00, "repair", "Auto Repair Center"),
    ("Annual safety inspection", 45.00, "inspection", "State Inspection Station"),
    ("Transmission fluid change", 120.00, "maintenance", "Transmission Specialists"),
    ("Air conditioning system repair", 280.00, "repair", "AC Pro Services"),
    ("Tire rotation and alignment", 85.00, "maintenance", "Tire World"),
    ("Battery replacement", 150.00, "repair", "Battery Plus"),
    ("Spark plug replacement", 95.00, "maintenance", "Engine Masters"),
    ("Windshield replacement", 400.00, "repair", "Glass Doctor"),
    ("Emissions testing", 25.00, "inspection", "Emissions Testing Center"),
]


def seed(database):
    logger.info("Clearing existing data")
    for name in ("users", "cars", "services", "fuel_entries", "activities"):
        database[name].delete_many({})

    now = datetime.utcnow()
    password = hash_password(SAMPLE_PASSWORD)
    users = []
    for sample in SAMPLE_USERS:
        user = dict(sample, password=password, two_factor_enabled=False, created_at=now, updated_at=now)
        user["_id"] = database.users.insert_one(user).inserted_id
        users.append(user)
        print(f"Created user: {user['name']} ({user['email']})")

    cars = []
    for i, sample in enumerate(SAMPLE_CARS):
        # spread cars round-robin over the users
        car = dict(sample, image=None, owner=users[i % len(users)]["_id"], services=[],
                   created_at=now, updated_at=now)
        car["_id"] = database.cars.insert_one(car).inserted_id
        cars.append(car)
        print(f"Created car: {car['brand']} {car['model']} ({car['year']})")

    services = []
    for i, (description, cost, service_type, provider) in enumerate(SAMPLE_SERVICES):
        service = {
            "description": description,
            "cost": cost,
            "service_type": service_type,
            "service_provider": provider,
            "car": cars[i % len(cars)]["_id"],
            "date": now - timedelta(days=random.uniform(0, 365)),
            "created_at": now,
            "updated_at": now,
        }
        service["_id"] = database.services.insert_one(service).inserted_id
        database.cars.update_one({"_id": service["car"]}, {"$push": {"services": service["_id"]}})
        services.append(service)
        print(f"Created service: {description} - ${cost:.2f}")

    return users, cars, services


def main():
    logging.basicConfig(level=logging.INFO)
    ensure_indexes(db)
    users, cars, services = seed(db)

    print("\nDatabase seeded successfully!")
    print(f"- Users: {len(users)}")
    print(f"- Cars: {len(cars)}")
    print(f"- Services: {len(services)}")
    print(f"\nAdmin login: {SAMPLE_USERS[0]['email']} / {SAMPLE_PASSWORD}")
    print(f"User login: {SAMPLE_USERS[1]['email']} / {SAMPLE_PASSWORD}")


if __name__ == "__main__":
    main()
