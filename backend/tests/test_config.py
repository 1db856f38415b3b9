import unittest
from datetime import date

from pydantic import ValidationError

from autosched.config import Settings


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        settings = Settings(_env_file=None)
        self.assertEqual(settings.max_batch_size, 100)
        self.assertEqual(settings.max_upload_bytes, 10 * 1024 * 1024)
        self.assertEqual(settings.term_weeks, 15)
        self.assertEqual(settings.max_pdf_pages, 5)

    def test_unknown_timezone(self):
        with self.assertRaises(ValidationError):
            Settings(timezone="Mars/Olympus_Mons")

    def test_term_end_formats(self):
        self.assertEqual(Settings(term_end_date="2026-12-04").term_end_date, date(2026, 12, 4))
        self.assertEqual(Settings(term_end_date="4 Dec 2026").term_end_date, date(2026, 12, 4))
        self.assertIsNone(Settings(term_end_date="").term_end_date)
        with self.assertRaises(ValidationError):
            Settings(term_end_date="whenever")


if __name__ == "__main__":
    unittest.main()
