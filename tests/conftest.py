"""Pytest configuration and fixtures for testing"""

import pytest

from healthkit_sqlite import create_converter
from healthkit_sqlite.database import close_db, open_db
from healthkit_sqlite.repositories import RowRepository, SchemaRegistry

from fixtures import write_export_zip


@pytest.fixture(scope='function')
def db():
    """In-memory database connection

    Note: This fixture has function scope, so each test gets a clean database
    """
    conn = open_db(':memory:')
    yield conn
    close_db(conn)


@pytest.fixture
def registry(db):
    return SchemaRegistry(db)


@pytest.fixture
def row_repo(db):
    return RowRepository(db)


@pytest.fixture
def converter():
    """Converter with the testing configuration (inline pipeline, batches of 2)"""
    return create_converter('testing')


@pytest.fixture
def make_export(tmp_path):
    """Factory writing an export.zip (or bare export.xml) into tmp_path"""

    def _make(xml, routes=None, as_zip=True, name='export.zip', root='apple_health_export'):
        if as_zip:
            return write_export_zip(tmp_path / name, xml, routes=routes, root=root)

        xml_path = tmp_path / 'export.xml'
        xml_path.write_text(xml, encoding='utf-8')
        for route_path, content in (routes or {}).items():
            route_file = tmp_path.joinpath(*route_path.lstrip('/').split('/'))
            route_file.parent.mkdir(parents=True, exist_ok=True)
            route_file.write_text(content, encoding='utf-8')
        return str(xml_path)

    return _make


@pytest.fixture
def open_result():
    """Open a converted database file for assertions; closed after the test"""
    opened = []

    def _open(path):
        conn = open_db(str(path))
        opened.append(conn)
        return RowRepository(conn)

    yield _open

    for conn in opened:
        close_db(conn)
