"""Shared fixtures: an in-memory remote store built from a nested folder description."""

import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from fetchers import RemoteStore
from models import EntryKind, RemoteEntry

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def folder(folder_id, name, *children):
    return {'kind': EntryKind.FOLDER, 'id': folder_id, 'name': name, 'children': list(children)}


def doc(document_id, name, html=None):
    if html is None:
        html = f'<html><body><h1>{name}</h1><p>Content of {name}</p></body></html>'
    return {'kind': EntryKind.DOCUMENT, 'id': document_id, 'name': name, 'html': html}


class FakeRemoteStore(RemoteStore):
    """RemoteStore serving listings and exports from memory.

    Children are listed in the order given, which stands for descending
    modified time; timestamps are assigned to match.
    """

    def __init__(self, root_id, *children, failing_documents=(), failing_folders=(), delay=0.0):
        self.root_id = root_id
        self.listings = {}
        self.documents = {}
        self.failing_documents = set(failing_documents)
        self.failing_folders = set(failing_folders)
        self.delay = delay

        self.list_calls = []
        self.export_calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

        self._register(root_id, list(children))

    def _register(self, folder_id, children):
        entries = []
        for position, child in enumerate(children):
            modified = BASE_TIME - timedelta(hours=position)
            entries.append(RemoteEntry(
                id=child['id'],
                name=child['name'],
                kind=child['kind'],
                created_time=BASE_TIME - timedelta(days=30),
                modified_time=modified
            ))
            if child['kind'] is EntryKind.FOLDER:
                self._register(child['id'], child['children'])
            else:
                self.documents[child['id']] = child['html']
        self.listings[folder_id] = entries

    def list_children(self, folder_id):
        self.list_calls.append(folder_id)
        if folder_id in self.failing_folders:
            raise ConnectionError(f"listing {folder_id} failed")
        return list(self.listings.get(folder_id, []))

    def export_document_html(self, document_id):
        with self._lock:
            self.export_calls.append(document_id)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if document_id in self.failing_documents:
                raise ConnectionError(f"export of {document_id} failed")
            return self.documents[document_id]
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture
def sample_store():
    """Root/{A/{doc1}, doc2} with folder A modified most recently."""
    return FakeRemoteStore(
        'root',
        folder('folder-a', 'A', doc('doc1', 'doc1')),
        doc('doc2', 'doc2')
    )


@pytest.fixture
def nested_store():
    """A three-level tree with documents at every level."""
    return FakeRemoteStore(
        'root',
        doc('top', 'Top'),
        folder(
            'eng', 'Engineering',
            doc('design', 'Design'),
            folder('backend', 'Backend', doc('api', 'API Guide')),
            doc('onboarding', 'Onboarding')
        ),
        folder('empty', 'Empty'),
        folder('hr', 'HR', doc('leave', 'Leave Policy'))
    )


@pytest.fixture
def export_config(tmp_path):
    return {
        'drive': {'folder_id': 'root'},
        'export': {'output_directory': str(tmp_path / 'out')},
        'advanced': {'max_concurrent_fetches': 4, 'fail_fast': True}
    }
