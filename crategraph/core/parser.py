"""Package metadata parser for registry index files.

Each package file holds one JSON object per line, one line per published
version, newest version last::

    {"name":"a","vers":"1.0.0","deps":[],"cksum":"…","features":{},"yanked":false}
    {"name":"a","vers":"2.0.0","deps":[{"name":"b","req":"^1.0", …}], …}

A single malformed line invalidates the whole file: resolution later
relies on a package's version list being complete, so silently dropping
a version would skew every requirement that points at it.

Typical usage::

    from crategraph.core.parser import VersionRecordParser

    parser = VersionRecordParser()
    package = parser.parse_file("index/se/rd/serde")
    print(package.latest)          # serde@1.0.200
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Union

import semver

from crategraph.constants import MAX_FILE_SIZE
from crategraph.models.package import Package, VersionRecord
from crategraph.exceptions import IntegrityError, InvalidRequirementError, ParseError
from crategraph.utils import get_logger, safe_read_file


class VersionRecordParser:
    """Stateless parser turning package metadata files into :class:`Package`.

    Args:
        max_file_size: Upper bound on a package file's size in bytes
            (``None`` disables the check).
    """

    def __init__(self, *, max_file_size: Optional[int] = MAX_FILE_SIZE) -> None:
        self.logger = get_logger("parser")
        self.max_file_size = max_file_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse_file(self, file_path: Union[str, Path]) -> Package:
        """Parse one package file from disk.

        Args:
            file_path: Path to the package metadata file.

        Returns:
            The package, versions newest-declared first.

        Raises:
            FileOperationError: The file is missing or cannot be read.
            ParseError: A line is malformed, a record belongs to another
                package, or the file holds no records.
            IntegrityError: The file declares the same version twice.
        """
        path = Path(file_path)
        content = safe_read_file(path, max_size=self.max_file_size)
        return self.parse_string(content, source_file_path=str(path))

    def parse_string(
        self,
        content: str,
        source_file_path: Optional[str] = None,
    ) -> Package:
        """Parse the text of one package file.

        Blank lines are ignored. See :meth:`parse_file` for errors.
        """
        records: List[VersionRecord] = []
        declared_on: Dict[semver.Version, int] = {}

        for line_number, line_text in enumerate(content.splitlines(), start=1):
            if not line_text.strip():
                continue

            record = self.parse_line(line_text, line_number, source_file_path)

            if records and record.name != records[0].name:
                raise ParseError(
                    f"Record for {record.name!r} found in file of package "
                    f"{records[0].name!r}",
                    line_number=line_number,
                    line_content=line_text,
                    file_path=source_file_path,
                )

            if record.version in declared_on:
                raise IntegrityError(
                    f"Duplicate version record {record} on lines "
                    f"{declared_on[record.version]} and {line_number}",
                    package_name=record.name,
                    version=str(record.version),
                    paths=[source_file_path] if source_file_path else [],
                )

            declared_on[record.version] = line_number
            records.append(record)

        if not records:
            raise ParseError(
                "Package file contains no version records",
                file_path=source_file_path,
            )

        package = Package.from_declared(records, source_path=source_file_path)
        self.logger.debug(
            "Parsed %d version(s) of %s from %s",
            len(package),
            package.name,
            source_file_path or "<string>",
        )
        return package

    def parse_line(
        self,
        line_text: str,
        line_number: int = 0,
        source_file_path: Optional[str] = None,
    ) -> VersionRecord:
        """Parse a single index line into a :class:`VersionRecord`.

        Args:
            line_text: Raw JSON line.
            line_number: 1-indexed line number for error reporting.
            source_file_path: Optional source path for error reporting.

        Raises:
            ParseError: The line is not valid JSON or not a valid record.

        Example::

            >>> parser = VersionRecordParser()
            >>> parser.parse_line('{"name":"a","vers":"1.0.0","deps":[],'
            ...                   '"cksum":"00","features":{},"yanked":false}')
            VersionRecord(name='a', version=Version(major=1, minor=0, patch=0, ...), ...)
        """
        context = dict(
            line_number=line_number or None,
            line_content=line_text,
            file_path=source_file_path,
        )

        try:
            data = json.loads(line_text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Malformed JSON: {exc}", **context) from exc

        try:
            return VersionRecord.from_json(data)
        except KeyError as exc:
            raise ParseError(f"Missing required field {exc}", **context) from exc
        except InvalidRequirementError as exc:
            raise ParseError(f"Invalid dependency requirement: {exc}", **context) from exc
        except (TypeError, ValueError) as exc:
            raise ParseError(f"Invalid version record: {exc}", **context) from exc
