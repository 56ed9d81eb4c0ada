"""
Student record store backed by a flat binary file.

The file is a bare concatenation of fixed-width student records: no header,
no record count, no checksum. Every operation opens the file, scans it from
the start and closes it again; nothing is cached between calls.
"""

import logging
import os
import struct
import sys
from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, Optional


logger = logging.getLogger(__name__)


# Constants
STUDENTDB_NAME_SIZE = 50  # 49 bytes of text + NUL terminator
STUDENTDB_COURSE_SIZE = 30  # 29 bytes of text + NUL terminator
STUDENTDB_DEFAULT_FILE = "students.dat"
STUDENTDB_TEMP_FILE = "temp.dat"
STUDENTDB_GPA_MIN = 0.0
STUDENTDB_GPA_MAX = 4.0
STUDENTDB_TEXT_FIELDS = ["STUDENT_ID", "NAME", "COURSE", "GPA", "YEAR"]

# id, name, course, gpa, year (little-endian, no padding)
STUDENT_RECORD_FORMAT = f"<i{STUDENTDB_NAME_SIZE}s{STUDENTDB_COURSE_SIZE}sdi"
STUDENT_RECORD_SIZE = struct.calcsize(STUDENT_RECORD_FORMAT)


# Data structures
@dataclass
class StudentRecord:
    """A single student entry."""
    student_id: int
    name: str = ""  # max 49 encoded bytes
    course: str = ""  # max 29 encoded bytes
    gpa: float = 0.0  # expected 0.0 - 4.0, not enforced
    year: int = 0  # expected 1 - 4, not enforced


@dataclass
class StudentStats:
    """Aggregate GPA statistics over every record in the store."""
    count: int
    average: float
    highest: float
    lowest: float


# Helper functions
def encode_fixed_text(text: str, size: int) -> bytes:
    """
    Encode text into a NUL-terminated field of `size` bytes.

    Text longer than size - 1 bytes is cut at the last whole UTF-8
    character that fits. The rest of the field is NUL padded.
    """
    raw = text.encode('utf-8')
    limit = size - 1
    if len(raw) > limit:
        logger.debug("Truncating %r to %d bytes", text, limit)
        raw = raw[:limit].decode('utf-8', errors='ignore').encode('utf-8')
    return raw.ljust(size, b'\x00')


def decode_fixed_text(buf: bytes) -> str:
    """Decode a NUL-terminated text field; bytes after the terminator are ignored."""
    end = buf.find(b'\x00')
    if end >= 0:
        buf = buf[:end]
    return buf.decode('utf-8', errors='replace')


def pack_student_record(record: StudentRecord) -> bytes:
    """
    Build the fixed-width byte block for a record.

    Raises:
        ValueError: if student_id or year does not fit a signed 32-bit integer
    """
    try:
        return struct.pack(
            STUDENT_RECORD_FORMAT,
            record.student_id,
            encode_fixed_text(record.name, STUDENTDB_NAME_SIZE),
            encode_fixed_text(record.course, STUDENTDB_COURSE_SIZE),
            record.gpa,
            record.year,
        )
    except struct.error as e:
        raise ValueError(f"Cannot pack student record {record.student_id!r}: {e}")


def unpack_student_record(buf: bytes) -> StudentRecord:
    """Parse one fixed-width byte block into a record."""
    student_id, name, course, gpa, year = struct.unpack(STUDENT_RECORD_FORMAT, buf)
    return StudentRecord(
        student_id=student_id,
        name=decode_fixed_text(name),
        course=decode_fixed_text(course),
        gpa=gpa,
        year=year,
    )


def read_student_records(file: BinaryIO) -> Iterator[StudentRecord]:
    """
    Read records from the current position until end of data.

    A short read at the end (a partial trailing record) ends the scan;
    the leftover bytes are dropped.
    """
    while True:
        buf = file.read(STUDENT_RECORD_SIZE)
        if not buf:
            break
        if len(buf) < STUDENT_RECORD_SIZE:
            logger.warning("Discarding %d trailing bytes in %s",
                           len(buf), getattr(file, 'name', '<stream>'))
            break
        yield unpack_student_record(buf)


def parse_int(text: str) -> int:
    """Parse a string to an integer, 0 if it is not one."""
    try:
        return int(text.strip())
    except ValueError:
        return 0


def parse_float(text: str) -> float:
    """Parse a string to a float, 0.0 if it is not one."""
    try:
        return float(text.strip())
    except ValueError:
        return 0.0


class StudentStore:
    """
    Linear-scan record store over one flat file.

    Args:
        filename: path of the backing file (created on first append)
        temp_filename: scratch file used while deleting; defaults to
            temp.dat next to the backing file, or filename + ".tmp" when
            the backing file is itself temp.dat

    Raises:
        ValueError: if temp_filename names the backing file
    """

    def __init__(self, filename: str = STUDENTDB_DEFAULT_FILE,
                 temp_filename: Optional[str] = None):
        self.filename = filename
        if temp_filename is None:
            temp_filename = os.path.join(os.path.dirname(filename), STUDENTDB_TEMP_FILE)
            if os.path.realpath(temp_filename) == os.path.realpath(filename):
                temp_filename = filename + ".tmp"
        elif os.path.realpath(temp_filename) == os.path.realpath(filename):
            raise ValueError(f"Temporary file must differ from the database file {filename}")
        self.temp_filename = temp_filename

    def exists(self) -> bool:
        """Check whether the backing file has been created yet."""
        return os.path.exists(self.filename)

    def append(self, record: StudentRecord) -> bool:
        """
        Append a record to the end of the file.

        Returns:
            True if the record was written, False if the file could not be
            opened or written
        """
        row_buffer = pack_student_record(record)
        try:
            with open(self.filename, "ab") as f:
                f.write(row_buffer)
        except OSError as e:
            logger.error("Cannot append to %s: %s", self.filename, e)
            return False
        return True

    def find_by_id(self, student_id: int) -> Optional[StudentRecord]:
        """Return the first record with the given id, or None."""
        try:
            with open(self.filename, "rb") as f:
                for record in read_student_records(f):
                    if record.student_id == student_id:
                        return record
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Cannot read %s: %s", self.filename, e)
        return None

    def list_all(self) -> Iterator[StudentRecord]:
        """
        Yield every record in file order.

        Each call starts a fresh scan. A missing file yields nothing.
        """
        try:
            f = open(self.filename, "rb")
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error("Cannot read %s: %s", self.filename, e)
            return
        with f:
            try:
                yield from read_student_records(f)
            except OSError as e:
                logger.error("Read of %s failed: %s", self.filename, e)

    def count(self) -> int:
        """Number of complete records in the file."""
        return sum(1 for _ in self.list_all())

    def delete_by_id(self, student_id: int) -> int:
        """
        Remove the first record with the given id.

        Surviving records are copied, in order, into the temporary file,
        which then replaces the original. When nothing matches the temporary
        file is thrown away and the original is left as it was.

        Returns:
            Number of records removed (0 or 1)
        """
        try:
            src = open(self.filename, "rb")
        except FileNotFoundError:
            return 0
        except OSError as e:
            logger.error("Cannot read %s: %s", self.filename, e)
            return 0

        found = False
        created = False
        swapped = False
        try:
            with src:
                try:
                    dst = open(self.temp_filename, "wb")
                except OSError as e:
                    logger.error("Cannot create temporary file %s: %s", self.temp_filename, e)
                    return 0
                created = True
                with dst:
                    while True:
                        buf = src.read(STUDENT_RECORD_SIZE)
                        if len(buf) < STUDENT_RECORD_SIZE:
                            if buf:
                                logger.warning("Discarding %d trailing bytes in %s",
                                               len(buf), self.filename)
                            break
                        if not found and unpack_student_record(buf).student_id == student_id:
                            found = True
                            continue
                        dst.write(buf)

            if found:
                os.replace(self.temp_filename, self.filename)
                swapped = True
                logger.info("Deleted student %d from %s", student_id, self.filename)
        except OSError as e:
            logger.error("Delete of student %d from %s failed: %s", student_id, self.filename, e)
            return 0
        finally:
            if created and not swapped:
                try:
                    os.remove(self.temp_filename)
                except OSError as e:
                    logger.warning("Cannot remove temporary file %s: %s", self.temp_filename, e)

        return 1 if found else 0

    def compute_statistics(self) -> Optional[StudentStats]:
        """
        Count, average, highest and lowest GPA over all records.

        Returns:
            StudentStats, or None when the store holds no records
        """
        count = 0
        total_gpa = 0.0
        highest_gpa = 0.0
        lowest_gpa = 0.0

        for record in self.list_all():
            if count == 0:
                highest_gpa = lowest_gpa = record.gpa
            else:
                if record.gpa > highest_gpa:
                    highest_gpa = record.gpa
                if record.gpa < lowest_gpa:
                    lowest_gpa = record.gpa
            total_gpa += record.gpa
            count += 1

        if count == 0:
            return None

        return StudentStats(
            count=count,
            average=total_gpa / count,
            highest=highest_gpa,
            lowest=lowest_gpa,
        )


def escape_text_field(text: str) -> str:
    """Escape a text value so it fits on one pipe-delimited line."""
    return (text.replace('\\', '\\\\')
                .replace('|', '\\|')
                .replace('\r', '\\r')
                .replace('\n', '\\n'))


def split_text_line(line: str) -> List[str]:
    """
    Split a pipe-delimited line, undoing escape_text_field on each value.

    Raises:
        ValueError: if the line ends inside an escape sequence
    """
    parts = []
    current = []
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == '\\':
            if i + 1 >= len(line):
                raise ValueError(f"Dangling escape at end of {line!r}")
            nxt = line[i + 1]
            current.append({'n': '\n', 'r': '\r'}.get(nxt, nxt))
            i += 2
            continue
        if ch == '|':
            parts.append(''.join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    parts.append(''.join(current))
    return parts


def export_students_to_text(store: StudentStore, txt_filename: str) -> int:
    """
    Export a store to a pipe-delimited text file.

    The text file format:
    - Line 1: Field names separated by pipes (|)
    - Line 2+: One record per line, in file order

    Backslash, pipe, CR and LF inside text fields are backslash-escaped.

    Args:
        store: The store to export
        txt_filename: Path of the text file to write

    Returns:
        Number of records written
    """
    rows = 0
    with open(txt_filename, 'w', encoding='utf-8') as f:
        f.write('|'.join(STUDENTDB_TEXT_FIELDS) + '\n')
        for record in store.list_all():
            values = [
                str(record.student_id),
                escape_text_field(record.name),
                escape_text_field(record.course),
                repr(record.gpa),
                str(record.year),
            ]
            f.write('|'.join(values) + '\n')
            rows += 1
    return rows


def import_students_from_text(store: StudentStore, txt_filename: str) -> int:
    """
    Append the rows of a pipe-delimited text file to a store.

    Args:
        store: The store to append to
        txt_filename: Path of a file written by export_students_to_text

    Returns:
        Number of records appended
    """
    with open(txt_filename, 'r', encoding='utf-8') as f:
        lines = f.readlines()

    if not lines:
        raise ValueError("Text file must have a header line")

    field_names = [name.strip() for name in lines[0].strip().split('|')]
    if field_names != STUDENTDB_TEXT_FIELDS:
        raise ValueError(f"Unexpected header: {lines[0].strip()}")

    records: List[StudentRecord] = []
    for line_no, line in enumerate(lines[1:], start=2):
        line = line.rstrip('\r\n')
        if not line.strip():
            continue

        try:
            parts = split_text_line(line)
        except ValueError as e:
            raise ValueError(f"Line {line_no}: {e}")
        if len(parts) != len(STUDENTDB_TEXT_FIELDS):
            raise ValueError(f"Line {line_no}: expected {len(STUDENTDB_TEXT_FIELDS)} fields, got {len(parts)}")

        try:
            records.append(StudentRecord(
                student_id=int(parts[0]),
                name=parts[1],
                course=parts[2],
                gpa=float(parts[3]),
                year=int(parts[4]),
            ))
        except ValueError:
            raise ValueError(f"Line {line_no}: invalid number in {line!r}")

    appended = 0
    for record in records:
        if not store.append(record):
            break
        appended += 1
    return appended


# Export functions
__all__ = [
    'StudentRecord', 'StudentStats', 'StudentStore',
    'STUDENTDB_NAME_SIZE', 'STUDENTDB_COURSE_SIZE',
    'STUDENTDB_DEFAULT_FILE', 'STUDENTDB_TEMP_FILE',
    'STUDENTDB_GPA_MIN', 'STUDENTDB_GPA_MAX', 'STUDENTDB_TEXT_FIELDS',
    'STUDENT_RECORD_FORMAT', 'STUDENT_RECORD_SIZE',
    'encode_fixed_text', 'decode_fixed_text',
    'pack_student_record', 'unpack_student_record', 'read_student_records',
    'parse_int', 'parse_float',
    'escape_text_field', 'split_text_line',
    'export_students_to_text', 'import_students_from_text',
    'main',
]


def main(argv: Optional[List[str]] = None) -> int:
    """
    Export a store to text or import text into a store.

    Usage:
        python studentdb_module.py export DATABASE_FILE TEXT_FILE
        python studentdb_module.py import DATABASE_FILE TEXT_FILE
    """
    if argv is None:
        argv = sys.argv
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    if len(argv) != 4 or argv[1] not in ('export', 'import'):
        print("Usage: studentdb-text export|import DATABASE_FILE TEXT_FILE")
        return 2

    command, db_filename, txt_filename = argv[1], argv[2], argv[3]
    store = StudentStore(db_filename)
    try:
        if command == 'export':
            rows = export_students_to_text(store, txt_filename)
            print(f"Exported {rows} students to {txt_filename}")
        else:
            rows = import_students_from_text(store, txt_filename)
            print(f"Imported {rows} students into {db_filename}")
    except (OSError, ValueError) as e:
        logger.error("%s failed: %s", command.capitalize(), e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
