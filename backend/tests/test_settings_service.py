import unittest

from retailpos import create_app
from retailpos.errors import ValidationError
from retailpos.extensions import db
from retailpos.models import BusinessSettings, User
from retailpos.services import settings_service


class SettingsServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = create_app({
            "SECRET_KEY": "test",
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "TESTING": True,
        })
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(BusinessSettings).delete()
        db.session.query(User).delete()
        db.session.commit()

        self.user = User(username="owner", email="owner@pos.test", password_hash="x")
        self.other = User(username="other", email="other@pos.test", password_hash="x")
        db.session.add_all([self.user, self.other])
        db.session.commit()

    def test_defaults_created_on_first_read(self):
        settings = settings_service.get_settings(self.user.id)
        self.assertEqual(settings.receipt_footer, "Thank you for your business!")
        self.assertIsNone(settings.name)

        again = settings_service.get_settings(self.user.id)
        self.assertEqual(again.id, settings.id)
        self.assertEqual(db.session.query(BusinessSettings).count(), 1)

    def test_business_update_is_partial(self):
        settings_service.update_business(self.user.id, {"name": "Corner Shop", "phone": "555-0100"})
        settings = settings_service.update_business(self.user.id, {"phone": "555-0199"})

        self.assertEqual(settings.name, "Corner Shop")
        self.assertEqual(settings.phone, "555-0199")

    def test_business_email_normalized_and_checked(self):
        settings = settings_service.update_business(self.user.id, {"email": "Owner@Shop.Test"})
        self.assertEqual(settings.email, "owner@shop.test")

        with self.assertRaises(ValidationError):
            settings_service.update_business(self.user.id, {"email": "nope"})

    def test_blocks_do_not_cross(self):
        with self.assertRaises(ValidationError):
            settings_service.update_business(self.user.id, {"receipt_footer": "Bye"})
        with self.assertRaises(ValidationError):
            settings_service.update_pos(self.user.id, {"name": "Corner Shop"})

    def test_receipt_footer_cannot_be_cleared(self):
        with self.assertRaises(ValidationError):
            settings_service.update_pos(self.user.id, {"receipt_footer": None})

    def test_settings_are_per_user(self):
        settings_service.update_pos(self.user.id, {"receipt_header": "Corner Shop"})
        other = settings_service.get_settings(self.other.id)
        self.assertIsNone(other.receipt_header)


if __name__ == "__main__":
    unittest.main()
