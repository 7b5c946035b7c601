from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from users.actor import Actor
from users.models import User


class UserModelTest(TestCase):
    def test_email_is_normalised(self):
        user = User.objects.create_user(email='Amina@Example.COM', password='password', name='Amina')
        self.assertEqual(user.email, 'amina@example.com')
        self.assertEqual(user.role, User.PARENT)

    def test_actor_roles(self):
        doctor = User.objects.create_user(email='doc@example.com', password='password', name='Dr. K', role=User.DOCTOR)
        actor = Actor.from_user(doctor)

        self.assertEqual(actor, Actor(id=doctor.pk, role='doctor'))
        self.assertTrue(actor.is_doctor)
        self.assertTrue(actor.is_staff)
        self.assertFalse(actor.is_parent)
        self.assertFalse(Actor(id=1, role='parent').is_staff)


class CreateAdminCommandTest(TestCase):
    def test_creates_admin(self):
        out = StringIO()
        call_command('create_admin', email='root@example.com', password='s3cret-pass', stdout=out)

        admin = User.objects.get(email='root@example.com')
        self.assertEqual(admin.role, User.ADMIN)
        self.assertTrue(admin.is_superuser)
        self.assertTrue(admin.check_password('s3cret-pass'))

    def test_promotes_existing_user(self):
        User.objects.create_user(email='root@example.com', password='password', name='Root')
        call_command('create_admin', email='root@example.com', password='ignored', stdout=StringIO())

        self.assertEqual(User.objects.get(email='root@example.com').role, User.ADMIN)
        self.assertEqual(User.objects.count(), 1)

    def test_requires_credentials(self):
        with self.assertRaises(CommandError):
            call_command('create_admin', email='', password='', stdout=StringIO())
