"""Access to an Apple Health export: export.zip or an extracted export.xml

Workout routes are stored next to export.xml as GPX files and referenced
from the XML by paths like '/workout-routes/route_2023-01-01_7.12pm.gpx'.
"""

import logging
import os
import posixpath
import zipfile
import zlib

from lxml import etree

from healthkit_sqlite.geometry import read_gpx_points
from healthkit_sqlite.utils.errors import RouteFileError, SourceError

logger = logging.getLogger(__name__)


DEFAULT_EXPORT_ROOT = 'apple_health_export'
EXPORT_XML_NAME = 'export.xml'


class ExportSource:
    """An opened Apple Health export

    Use as a context manager; open_xml() returns a binary stream of
    export.xml and load_route() resolves FileReference paths.
    """

    def __init__(self, path, export_root=DEFAULT_EXPORT_ROOT, xml_member=None):
        """Initialize the source

        Args:
            path: Path to export.zip or to an extracted export.xml
            export_root: Top-level directory inside the archive
            xml_member: Archive member holding export.xml (auto-detected when None)
        """
        self.path = path
        self.export_root = export_root
        self.xml_member = xml_member or posixpath.join(export_root, EXPORT_XML_NAME)
        self._archive = None

    @property
    def is_archive(self):
        return self._archive is not None

    def open(self):
        """Open the underlying file

        Raises:
            SourceError: If the path does not exist or is not a readable export
        """
        if not os.path.exists(self.path):
            raise SourceError(f"{self.path} not found", path=self.path)

        if zipfile.is_zipfile(self.path):
            try:
                self._archive = zipfile.ZipFile(self.path)
            except (OSError, zipfile.BadZipFile) as e:
                raise SourceError(f"could not open archive {self.path}: {e}", path=self.path, original_error=e)
            self.xml_member = self._find_xml_member()
            logger.info("Reading %s from %s", self.xml_member, self.path)
        else:
            logger.info("Reading %s", self.path)
        return self

    def close(self):
        if self._archive is not None:
            self._archive.close()
            self._archive = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open_xml(self):
        """Open export.xml as a binary stream

        Raises:
            SourceError: If the stream cannot be opened
        """
        try:
            if self._archive is not None:
                return self._archive.open(self.xml_member)
            return open(self.path, 'rb')
        except (OSError, KeyError, zipfile.BadZipFile) as e:
            raise SourceError(f"could not open export.xml: {e}", path=self.path, original_error=e)

    def load_route(self, path):
        """Read the track points of a route file referenced from export.xml

        Args:
            path: FileReference path attribute, e.g. '/workout-routes/route.gpx'

        Returns:
            List of (lon, lat, elevation) tuples

        Raises:
            RouteFileError: If the file is missing or not a valid GPX document
        """
        relative = path.lstrip('/')
        try:
            if self._archive is not None:
                member = posixpath.join(self.export_root, relative)
                with self._archive.open(member) as stream:
                    return read_gpx_points(stream)

            route_path = os.path.join(os.path.dirname(os.path.abspath(self.path)), *relative.split('/'))
            with open(route_path, 'rb') as stream:
                return read_gpx_points(stream)
        except KeyError:
            raise RouteFileError(path, "not found in archive")
        except (OSError, zipfile.BadZipFile, zlib.error) as e:
            raise RouteFileError(path, str(e))
        except (ValueError, etree.XMLSyntaxError) as e:
            raise RouteFileError(path, f"invalid GPX: {e}")

    def _find_xml_member(self):
        names = self._archive.namelist()
        if self.xml_member in names:
            return self.xml_member

        # Some exports are re-zipped without the top-level directory
        for name in names:
            if posixpath.basename(name).lower() == EXPORT_XML_NAME:
                self.export_root = posixpath.dirname(name)
                return name

        raise SourceError(f"{self.path} does not contain {EXPORT_XML_NAME}", path=self.path)
