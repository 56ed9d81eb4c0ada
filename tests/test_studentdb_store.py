"""
Test file for StudentStore append, lookup and listing.
"""

import os
import shutil
import sys
import tempfile
import unittest
from unittest import mock

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import studentdb_module
from studentdb_module import (
    StudentRecord, StudentStore,
    STUDENT_RECORD_SIZE, STUDENTDB_TEMP_FILE,
    pack_student_record
)


def make_student(student_id: int, gpa: float = 3.0) -> StudentRecord:
    return StudentRecord(student_id=student_id, name=f"Student {student_id}",
                         course="Computer Science", gpa=gpa, year=1 + student_id % 4)


class TestStudentStore(unittest.TestCase):
    """Test cases for the basic store operations."""

    def setUp(self):
        """Set up a scratch directory per test."""
        self.test_dir = tempfile.mkdtemp()
        self.test_filename = os.path.join(self.test_dir, "students.dat")
        self.store = StudentStore(self.test_filename)

    def tearDown(self):
        """Clean up test files."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_default_temp_file_sits_next_to_database(self):
        self.assertEqual(self.store.temp_filename,
                         os.path.join(self.test_dir, STUDENTDB_TEMP_FILE))

    def test_append_creates_file(self):
        self.assertFalse(self.store.exists())
        self.assertTrue(self.store.append(make_student(1)))
        self.assertTrue(self.store.exists())
        self.assertEqual(os.path.getsize(self.test_filename), STUDENT_RECORD_SIZE)

    def test_append_then_find(self):
        record = StudentRecord(student_id=1001, name="Alan Turing", course="Logic",
                               gpa=3.9, year=3)
        self.assertTrue(self.store.append(record))

        found = self.store.find_by_id(1001)
        self.assertEqual(found, record)

    def test_append_grows_file_by_one_record(self):
        for i in range(1, 6):
            self.store.append(make_student(i))
            self.assertEqual(os.path.getsize(self.test_filename), i * STUDENT_RECORD_SIZE)

    def test_append_truncates_long_text(self):
        record = StudentRecord(student_id=5, name="N" * 70, course="C" * 40, gpa=2.5, year=1)
        self.store.append(record)

        found = self.store.find_by_id(5)
        self.assertEqual(found.name, "N" * 49)
        self.assertEqual(found.course, "C" * 29)

    def test_append_does_not_check_duplicates(self):
        self.assertTrue(self.store.append(make_student(7, gpa=1.0)))
        self.assertTrue(self.store.append(make_student(7, gpa=2.0)))
        self.assertEqual(self.store.count(), 2)

    def test_append_failure_when_file_cannot_be_opened(self):
        # A directory cannot be opened for appending
        store = StudentStore(self.test_dir)
        self.assertFalse(store.append(make_student(1)))

    def test_find_missing_id(self):
        self.store.append(make_student(1))
        self.assertIsNone(self.store.find_by_id(2))

    def test_find_returns_first_match(self):
        self.store.append(make_student(4, gpa=1.5))
        self.store.append(make_student(4, gpa=3.5))

        self.assertEqual(self.store.find_by_id(4).gpa, 1.5)

    def test_list_in_insertion_order(self):
        for student_id in [1, 2, 3]:
            self.store.append(make_student(student_id))

        ids = [r.student_id for r in self.store.list_all()]
        self.assertEqual(ids, [1, 2, 3])

    def test_list_is_restartable(self):
        for student_id in [10, 20]:
            self.store.append(make_student(student_id))

        first = list(self.store.list_all())
        second = list(self.store.list_all())
        self.assertEqual(first, second)
        self.assertEqual(len(first), 2)

    def test_list_sees_appends_between_scans(self):
        self.store.append(make_student(1))
        self.assertEqual(self.store.count(), 1)
        self.store.append(make_student(2))
        self.assertEqual(self.store.count(), 2)

    def test_empty_store(self):
        """A missing file behaves as a store with no records."""
        self.assertFalse(self.store.exists())
        self.assertIsNone(self.store.find_by_id(1))
        self.assertEqual(list(self.store.list_all()), [])
        self.assertEqual(self.store.count(), 0)
        self.assertEqual(self.store.delete_by_id(1), 0)
        self.assertIsNone(self.store.compute_statistics())
        self.assertFalse(self.store.exists())

    def test_empty_file(self):
        open(self.test_filename, "wb").close()
        self.assertTrue(self.store.exists())
        self.assertEqual(list(self.store.list_all()), [])
        self.assertIsNone(self.store.find_by_id(1))

    def test_read_error_during_scan(self):
        """A failing read ends the scan instead of escaping to the caller."""
        for student_id in [1, 2, 3]:
            self.store.append(make_student(student_id, gpa=2.0))

        real_reader = studentdb_module.read_student_records

        def one_then_fail(file):
            records = real_reader(file)
            yield next(records)
            raise OSError(5, "Input/output error")

        with mock.patch("studentdb_module.read_student_records", one_then_fail):
            self.assertEqual([r.student_id for r in self.store.list_all()], [1])
            self.assertEqual(self.store.count(), 1)
            stats = self.store.compute_statistics()

        self.assertEqual(stats.count, 1)
        self.assertEqual(self.store.count(), 3)

    def test_partial_trailing_record(self):
        self.store.append(make_student(1))
        self.store.append(make_student(2))
        with open(self.test_filename, "ab") as f:
            f.write(pack_student_record(make_student(3))[:STUDENT_RECORD_SIZE // 2])

        self.assertEqual([r.student_id for r in self.store.list_all()], [1, 2])
        self.assertEqual(self.store.count(), 2)
        self.assertIsNone(self.store.find_by_id(3))
        self.assertIsNotNone(self.store.find_by_id(2))


if __name__ == '__main__':
    unittest.main()
