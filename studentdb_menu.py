#!/usr/bin/env python3
"""
Interactive menu for the student record store.

Usage:
    python studentdb_menu.py [DATABASE_FILE]
"""

import logging
import sys
from typing import Callable, List, Optional

from studentdb_module import (
    StudentRecord, StudentStore,
    STUDENTDB_DEFAULT_FILE, STUDENTDB_GPA_MIN, STUDENTDB_GPA_MAX,
    parse_int, parse_float
)


logger = logging.getLogger(__name__)

InputFunc = Callable[[str], str]
OutputFunc = Callable[[str], None]

MENU_ADD = 1
MENU_SEARCH = 2
MENU_LIST = 3
MENU_DELETE = 4
MENU_STATS = 5
MENU_EXIT = 6

TABLE_SEPARATOR = "-" * 59


def display_menu(output: OutputFunc) -> None:
    """Print the main menu."""
    output("\n=== MENU ===")
    output("1. Add Student")
    output("2. Search Student")
    output("3. Display All Students")
    output("4. Delete Student")
    output("5. Calculate Statistics")
    output("6. Exit")
    output("==============")


def format_student_row(record: StudentRecord) -> str:
    """One fixed-width table line for a record."""
    return "%-6d %-20s %-15s %-6.2f %-4d" % (
        record.student_id, record.name, record.course, record.gpa, record.year)


def format_student_table(records: List[StudentRecord]) -> List[str]:
    """Header, separator and one line per record."""
    lines = ["%-6s %-20s %-15s %-6s %-4s" % ("ID", "Name", "Course", "GPA", "Year"),
             TABLE_SEPARATOR]
    lines.extend(format_student_row(record) for record in records)
    return lines


def read_text(input_func: InputFunc, prompt: str) -> str:
    """Read one line and strip the trailing newline characters."""
    return input_func(prompt).rstrip('\r\n')


def prompt_add_student(store: StudentStore, input_func: InputFunc, output: OutputFunc) -> bool:
    """Collect the fields of a new student and append it."""
    output("\n=== Add New Student ===")
    student_id = parse_int(read_text(input_func, "Enter Student ID: "))
    name = read_text(input_func, "Enter Name: ")
    course = read_text(input_func, "Enter Course: ")
    gpa = parse_float(read_text(input_func, f"Enter GPA ({STUDENTDB_GPA_MIN} - {STUDENTDB_GPA_MAX}): "))
    year = parse_int(read_text(input_func, "Enter Year (1-4): "))

    record = StudentRecord(student_id=student_id, name=name, course=course, gpa=gpa, year=year)
    try:
        return store.append(record)
    except ValueError as e:
        logger.error("%s", e)
        return False


def prompt_search_student(store: StudentStore, input_func: InputFunc, output: OutputFunc) -> bool:
    """Look up a student by id and print it."""
    output("\n=== Search Student ===")
    search_id = parse_int(read_text(input_func, "Enter Student ID to search: "))

    if not store.exists():
        output("Database file not found. No students in system.")
        return False

    student = store.find_by_id(search_id)
    if student is None:
        return False

    output("\n=== Student Found ===")
    output(f"ID: {student.student_id}")
    output(f"Name: {student.name}")
    output(f"Course: {student.course}")
    output(f"GPA: {student.gpa:.2f}")
    output(f"Year: {student.year}")
    return True


def display_all_students(store: StudentStore, output: OutputFunc) -> int:
    """Print every student as a table and return how many were shown."""
    output("\n=== All Students ===")

    if not store.exists():
        output("No database file found. No students in system.")
        return 0

    records = list(store.list_all())
    for line in format_student_table(records):
        output(line)
    output(f"\nTotal students: {len(records)}")
    return len(records)


def prompt_delete_student(store: StudentStore, input_func: InputFunc, output: OutputFunc) -> bool:
    """Delete the first student with the entered id."""
    output("\n=== Delete Student ===")
    delete_id = parse_int(read_text(input_func, "Enter Student ID to delete: "))

    if not store.exists():
        output("Database file not found.")
        return False

    if store.delete_by_id(delete_id) == 0:
        output(f"Student with ID {delete_id} not found.")
        return False
    return True


def display_statistics(store: StudentStore, output: OutputFunc) -> bool:
    """Print GPA statistics; False when there is nothing to report."""
    output("\n=== Statistics ===")

    stats = store.compute_statistics()
    if stats is None:
        output("No students in database.")
        return False

    output(f"Total Students: {stats.count}")
    output(f"Average GPA: {stats.average:.2f}")
    output(f"Highest GPA: {stats.highest:.2f}")
    output(f"Lowest GPA: {stats.lowest:.2f}")
    return True


def run_menu(store: StudentStore, input_func: Optional[InputFunc] = None,
             output: Optional[OutputFunc] = None) -> None:
    """
    Run the menu loop until the user picks Exit or input runs out.

    Args:
        store: The record store to operate on
        input_func: Reads one line given a prompt (defaults to input)
        output: Writes one line (defaults to print)
    """
    if input_func is None:
        input_func = input
    if output is None:
        output = print

    output("=== StudentDB Management System ===")
    output("Welcome to your personal database system!\n")

    choice = 0
    while choice != MENU_EXIT:
        display_menu(output)
        try:
            choice = parse_int(read_text(input_func, "Enter your choice: "))

            if choice == MENU_ADD:
                if prompt_add_student(store, input_func, output):
                    output("Student added successfully!")
                else:
                    output("Failed to add student.")
            elif choice == MENU_SEARCH:
                if not prompt_search_student(store, input_func, output):
                    output("Student not found.")
            elif choice == MENU_LIST:
                display_all_students(store, output)
            elif choice == MENU_DELETE:
                if prompt_delete_student(store, input_func, output):
                    output("Student deleted successfully!")
                else:
                    output("Failed to delete student.")
            elif choice == MENU_STATS:
                display_statistics(store, output)
            elif choice == MENU_EXIT:
                output("Thank you for using StudentDB!")
            else:
                output("Invalid choice. Please try again.")

            input_func("\nPress Enter to continue...")
        except EOFError:
            break


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    filename = argv[1] if len(argv) > 1 else STUDENTDB_DEFAULT_FILE
    run_menu(StudentStore(filename))
    return 0


if __name__ == "__main__":
    sys.exit(main())
