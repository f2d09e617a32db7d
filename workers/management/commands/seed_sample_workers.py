# workers/management/commands/seed_sample_workers.py
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from users.models import User
from workers.models import Worker

SAMPLE_PASSWORD = 'Worker@123'

SAMPLE_WORKERS = [
    {
        'name': 'Rajesh Kumar',
        'email': 'rajesh.plumber@test.com',
        'phone': '9876543210',
        'categories': ['Plumber'],
        'skills': ['Plumbing', 'Pipe Repair', 'Leak Fixing', 'Bathroom Fitting'],
        'experience': 5,
        'price_per_hour': 350,
        'latitude': 12.9716, 'longitude': 77.5946,
        'address': 'Koramangala, Bangalore',
    },
    {
        'name': 'Amit Sharma',
        'email': 'amit.electrician@test.com',
        'phone': '9876543211',
        'categories': ['Electrician', 'AC Repair'],
        'skills': ['Electrical Wiring', 'AC Installation', 'Fan Repair', 'Switch Board'],
        'experience': 7,
        'price_per_hour': 400,
        'latitude': 12.9698, 'longitude': 77.6033,
        'address': 'Indiranagar, Bangalore',
    },
    {
        'name': 'Suresh Reddy',
        'email': 'suresh.carpenter@test.com',
        'phone': '9876543212',
        'categories': ['Carpenter'],
        'skills': ['Wood Work', 'Furniture Making', 'Door Repair', 'Cabinet Installation'],
        'experience': 8,
        'price_per_hour': 380,
        'latitude': 12.9634, 'longitude': 77.5847,
        'address': 'HSR Layout, Bangalore',
    },
    {
        'name': 'Vikram Singh',
        'email': 'vikram.painter@test.com',
        'phone': '9876543213',
        'categories': ['Painter'],
        'skills': ['Wall Painting', 'Texture Painting', 'Waterproofing'],
        'experience': 4,
        'price_per_hour': 300,
        'latitude': 12.9352, 'longitude': 77.6245,
        'address': 'BTM Layout, Bangalore',
    },
    {
        'name': 'Priya Nair',
        'email': 'priya.cleaner@test.com',
        'phone': '9876543214',
        'categories': ['Cleaner'],
        'skills': ['Deep Cleaning', 'Kitchen Cleaning', 'Sofa Cleaning'],
        'experience': 3,
        'price_per_hour': 250,
        'latitude': 12.9784, 'longitude': 77.6408,
        'address': 'Domlur, Bangalore',
    },
]


class Command(BaseCommand):
    help = 'Create approved sample workers around Bangalore for local testing'

    def handle(self, *args, **options):
        created = 0
        with transaction.atomic():
            for data in SAMPLE_WORKERS:
                if User.objects.filter(email=data['email']).exists():
                    self.stdout.write(f"Skipping {data['email']} (exists)")
                    continue
                self.create_worker(data)
                created += 1

        self.stdout.write(self.style.SUCCESS(f'Created {created} sample workers'))

    def create_worker(self, data):
        user = User.objects.create_worker(
            data['email'], SAMPLE_PASSWORD, name=data['name'], phone=data['phone']
        )
        return Worker.objects.create(
            user=user,
            categories=data['categories'],
            skills=data['skills'],
            experience=data['experience'],
            price_per_hour=data['price_per_hour'],
            address=data['address'],
            city='Bangalore',
            latitude=data['latitude'],
            longitude=data['longitude'],
            location_updated_at=timezone.now(),
            approval_status='approved',
            approved_at=timezone.now(),
            verified=True,
        )
