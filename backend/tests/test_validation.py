import unittest

from autosched.validation import sanitize, validate_batch, validate_session


def make_session(**overrides):
    session = {
        "day": "Monday",
        "start_time": "9:00AM",
        "end_time": "9:50AM",
        "course_code": "CS F213",
        "course_name": "Discrete Structures",
        "class_type": "Lecture",
        "location": "Room 101",
        "instructor": "Staff",
    }
    session.update(overrides)
    return session


class TestValidateSession(unittest.TestCase):
    def test_valid_session(self):
        result = validate_session(make_session())
        self.assertTrue(result.is_valid)
        self.assertEqual(result.errors, [])

    def test_instructor_optional(self):
        session = make_session()
        del session["instructor"]
        self.assertTrue(validate_session(session).is_valid)
        self.assertTrue(validate_session(make_session(instructor=None)).is_valid)
        self.assertFalse(validate_session(make_session(instructor=42)).is_valid)

    def test_non_object_short_circuits(self):
        for value in (None, "Monday", 3, ["day"]):
            with self.subTest(value=value):
                result = validate_session(value)
                self.assertFalse(result.is_valid)
                self.assertEqual(result.errors, ["Invalid class object"])

    def test_missing_fields_accumulate(self):
        session = make_session()
        for field in ("course_code", "course_name", "location"):
            del session[field]
        result = validate_session(session)
        self.assertFalse(result.is_valid)
        self.assertGreaterEqual(len(result.errors), 3)
        self.assertIn("Missing or invalid course_code", result.errors)
        self.assertIn("Missing or invalid course_name", result.errors)
        self.assertIn("Missing or invalid location", result.errors)

    def test_blank_and_non_string_fields(self):
        result = validate_session(make_session(course_name="   ", class_type=7))
        self.assertIn("Missing or invalid course_name", result.errors)
        self.assertIn("Missing or invalid class_type", result.errors)

    def test_fields_empty_after_sanitizing(self):
        result = validate_session(
            make_session(course_code="<>", course_name="<<>>", location="< >")
        )
        self.assertFalse(result.is_valid)
        self.assertEqual(
            result.errors,
            [
                "Missing or invalid course_code",
                "Missing or invalid course_name",
                "Missing or invalid location",
            ],
        )
        self.assertTrue(validate_session(make_session(course_name="<b>Algebra</b>")).is_valid)

    def test_weekend_day_rejected(self):
        result = validate_session(make_session(day="Saturday"))
        self.assertEqual(result.errors, ['Invalid day "Saturday"'])

    def test_bad_start_time(self):
        result = validate_session(make_session(start_time="14:00PM"))
        self.assertFalse(result.is_valid)
        self.assertEqual(result.errors, ['Invalid start time format "14:00PM"'])

    def test_ordering_skipped_when_a_time_is_invalid(self):
        result = validate_session(make_session(start_time="10:00AM", end_time="nonsense"))
        self.assertEqual(result.errors, ['Invalid end time format "nonsense"'])

    def test_end_not_after_start(self):
        for start, end in (("10:00AM", "9:50AM"), ("14:00", "2:00PM"), ("9:00AM", "9:00am")):
            with self.subTest(start=start, end=end):
                result = validate_session(make_session(start_time=start, end_time=end))
                self.assertIn("End time must be after start time", result.errors)

    def test_mixed_formats_in_order(self):
        self.assertTrue(validate_session(make_session(start_time="11:00AM", end_time="13:00")).is_valid)


class TestValidateBatch(unittest.TestCase):
    def test_index_labels(self):
        errors = validate_batch([make_session(), make_session(day="Sunday"), "oops"])
        self.assertEqual(
            errors,
            ['Class 2: Invalid day "Sunday"', "Class 3: Invalid class object"],
        )

    def test_clean_batch(self):
        self.assertEqual(validate_batch([make_session(), make_session(day="Friday")]), [])


class TestSanitize(unittest.TestCase):
    def test_strips_brackets_and_whitespace(self):
        self.assertEqual(sanitize("  <b>Room 5</b> "), "bRoom 5/b")
        self.assertEqual(sanitize(None), "")
        self.assertEqual(sanitize("< >"), "")


if __name__ == "__main__":
    unittest.main()
