#!/usr/bin/env python3
"""
Tests for the HTTP endpoint.

Tests:
1. Container CRUD routes and error status mapping (404 / 409 / 400)
2. Container removal requires confirm=true
3. Search route
4. Export download headers and import replacing the collection
5. Capture status, camera analyze and upload routes with fake model/camera
6. Camera start failure answers 503 with a manual fallback hint
7. Model unavailable answers 503 while manual entry keeps working
"""

import json
import os
import sys
import tempfile
from contextlib import contextmanager

import cv2
import numpy as np
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from boxscan.capture.CapturePipeline import CapturePipeline
from boxscan.detection.BaseDetection import BaseDetector, Detection
from boxscan.detection.Detector import Detector
from boxscan.endpoint.server import app, status_for
from boxscan.endpoint.shared import set_shared_resources
from boxscan.errors import DeviceUnavailable, InvalidImage, ItemIndexError, StorageError
from boxscan.frame_source.FrameSource import FrameSource
from boxscan.inventory.ContainerStore import ContainerStore
from boxscan.storage.Database import DatabaseManager


class FakeModel(BaseDetector):
    def __init__(self, detections):
        self.detections = detections

    def detect(self, frame):
        return list(self.detections)

    def cleanup(self):
        pass


class FakeCamera(FrameSource):
    def __init__(self):
        self.released = False

    def snapshot(self):
        return np.full((48, 64, 3), 90, dtype=np.uint8)

    @property
    def is_open(self):
        return not self.released

    def release(self):
        self.released = True


@contextmanager
def api(detections=(), model_available=True, camera_factory=FakeCamera):
    """TestClient over a temporary database with fake model and camera installed."""
    def loader(variant):
        if not model_available:
            raise RuntimeError("no weights")
        return FakeModel(list(detections))

    with tempfile.TemporaryDirectory() as tmpdir:
        db = DatabaseManager(os.path.join(tmpdir, 'api.db'))
        store = ContainerStore(db)
        detector = Detector(loader, 'primary', 'fallback')
        detector.load()
        pipeline = CapturePipeline(detector, store, camera_factory=camera_factory)
        set_shared_resources(db=db, store=store, detector=detector, pipeline=pipeline)
        # Lifespan shutdown closes the database and clears the singletons
        with TestClient(app) as client:
            yield client


def png_bytes():
    ok, buf = cv2.imencode('.png', np.full((32, 32, 3), 200, dtype=np.uint8))
    assert ok
    return buf.tobytes()


def test_list_seeded_containers():
    with api() as client:
        response = client.get('/api/containers')
        assert response.status_code == 200
        body = response.json()
        assert body['count'] == 2
        assert [c['id'] for c in body['containers']] == ['BOX-001', 'BOX-002']
        assert body['containers'][0]['items'] == ['Arduino Uno', 'Breadboard', 'Jumper Wires']
    print("✓ test_list_seeded_containers passed")


def test_container_crud_and_errors():
    with api() as client:
        response = client.post('/api/containers', json={'id': 'SHELF-A'})
        assert response.status_code == 201
        assert response.json()['origin'] == 'manual'
        assert response.json()['items'] == []

        assert client.post('/api/containers', json={'id': 'SHELF-A'}).status_code == 409
        assert client.post('/api/containers', json={'id': '   '}).status_code == 400

        response = client.post('/api/containers/SHELF-A/items', json={'item': 'Soldering iron'})
        assert response.status_code == 201
        assert response.json()['items'] == ['Soldering iron']

        assert client.post('/api/containers/NOPE/items', json={'item': 'x'}).status_code == 404
        assert client.post('/api/containers/SHELF-A/items', json={'item': ''}).status_code == 400

        response = client.delete('/api/containers/SHELF-A/items/0')
        assert response.status_code == 200
        assert response.json()['removed'] == 'Soldering iron'
        assert response.json()['container']['items'] == []

        response = client.delete('/api/containers/SHELF-A/items/0')
        assert response.status_code == 404
        assert response.json()['error'] == 'ItemIndexError'

        assert client.get('/api/containers/SHELF-A').status_code == 200
        assert client.get('/api/containers/MISSING').status_code == 404
    print("✓ test_container_crud_and_errors passed")


def test_remove_container_requires_confirm():
    with api() as client:
        assert client.delete('/api/containers/BOX-001').status_code == 400
        assert client.get('/api/containers').json()['count'] == 2

        response = client.delete('/api/containers/BOX-001', params={'confirm': 'true'})
        assert response.status_code == 200
        assert response.json()['removed'] == 'BOX-001'
        assert [c['id'] for c in client.get('/api/containers').json()['containers']] == ['BOX-002']

        assert client.delete('/api/containers/BOX-001', params={'confirm': 'true'}).status_code == 404
    print("✓ test_remove_container_requires_confirm passed")


def test_search_route():
    with api() as client:
        body = client.get('/api/search', params={'q': 'arduino'}).json()
        assert body['count'] == 1
        assert body['results'] == [{'item': 'Arduino Uno', 'containerId': 'BOX-001'}]
        assert client.get('/api/search').json()['results'] == []
    print("✓ test_search_route passed")


def test_export_and_import():
    with api() as client:
        response = client.get('/api/export')
        assert response.status_code == 200
        assert 'inventory-backup-' in response.headers['content-disposition']
        exported = response.json()
        assert [c['id'] for c in exported] == ['BOX-001', 'BOX-002']

        replacement = [{'id': 'ONLY', 'items': ['thing'], 'createdAt': '2026-01-02T03:04:05', 'origin': 'manual'}]
        response = client.post('/api/import', content=json.dumps(replacement).encode('utf-8'))
        assert response.status_code == 200
        assert response.json()['count'] == 1
        assert client.get('/api/containers').json()['containers'] == replacement

        response = client.post('/api/import', content=b'{"not":"an array"}')
        assert response.status_code == 400
        assert client.get('/api/containers').json()['containers'] == replacement
    print("✓ test_export_and_import passed")


def test_capture_status_and_camera_analyze():
    with api(detections=[Detection('dog', 0.92), Detection('couch', 0.40)]) as client:
        status = client.get('/api/capture/status').json()
        assert status['ai_available'] is True
        assert status['state'] == 'idle'

        assert client.post('/api/capture/camera/analyze').status_code == 503

        response = client.post('/api/capture/camera/start')
        assert response.status_code == 200
        assert response.json()['is_scanning'] is True
        assert client.post('/api/capture/camera/start').status_code == 409

        response = client.post('/api/capture/camera/analyze')
        assert response.status_code == 200
        body = response.json()
        assert body['outcome'] == 'committed'
        assert body['items'] == ['dog (92%)']
        assert body['container']['origin'] == 'ai_generated'
        assert 'created' in body['message']

        containers = client.get('/api/containers').json()
        assert containers['count'] == 3
        assert containers['containers'][-1]['items'] == ['dog (92%)']
        assert client.get('/api/capture/status').json()['is_scanning'] is False
    print("✓ test_capture_status_and_camera_analyze passed")


def test_camera_stop_route():
    with api() as client:
        client.post('/api/capture/camera/start')
        response = client.post('/api/capture/camera/stop')
        assert response.status_code == 200
        assert response.json()['is_scanning'] is False
        assert response.json()['last_outcome'] == 'cancelled'
        assert client.get('/api/containers').json()['count'] == 2
    print("✓ test_camera_stop_route passed")


def test_camera_unavailable_offers_manual_fallback():
    def no_camera():
        raise DeviceUnavailable("no camera attached")

    with api(camera_factory=no_camera) as client:
        response = client.post('/api/capture/camera/start')
        assert response.status_code == 503
        assert response.json()['fallback'] == 'manual'
        assert client.get('/api/capture/status').json()['state'] == 'idle'
        assert client.post('/api/containers', json={'id': 'HAND-1'}).status_code == 201
    print("✓ test_camera_unavailable_offers_manual_fallback passed")


def test_upload_route():
    with api(detections=[Detection('resistor', 0.35)]) as client:
        response = client.post(
            '/api/capture/upload', content=png_bytes(), headers={'content-type': 'image/png'},
        )
        assert response.status_code == 200
        assert response.json()['items'] == ['resistor (35%)']

        response = client.post(
            '/api/capture/upload', content=b'%PDF-1.4', headers={'content-type': 'application/pdf'},
        )
        assert response.status_code == 422
        assert response.json()['error'] == 'InvalidImage'

        response = client.post(
            '/api/capture/upload', content=b'garbage', headers={'content-type': 'image/jpeg'},
        )
        assert response.status_code == 422
        assert client.get('/api/containers').json()['count'] == 3
    print("✓ test_upload_route passed")


def test_upload_no_detections_route():
    with api(detections=[Detection('resistor', 0.1)]) as client:
        response = client.post(
            '/api/capture/upload', content=png_bytes(), headers={'content-type': 'image/png'},
        )
        assert response.status_code == 200
        assert response.json()['outcome'] == 'no_detections'
        assert response.json()['container'] is None
        assert client.get('/api/containers').json()['count'] == 2
    print("✓ test_upload_no_detections_route passed")


def test_model_unavailable_manual_only():
    with api(model_available=False) as client:
        status = client.get('/api/capture/status').json()
        assert status['ai_available'] is False
        assert status['model_state'] == 'unavailable'

        assert client.post('/api/capture/camera/start').status_code == 503
        response = client.post(
            '/api/capture/upload', content=png_bytes(), headers={'content-type': 'image/png'},
        )
        assert response.status_code == 503
        assert response.json()['error'] == 'ModelUnavailable'

        assert client.post('/api/containers', json={'id': 'MANUAL'}).status_code == 201

        health = client.get('/health').json()
        assert health['model']['state'] == 'unavailable'
        assert len(health['model']['errors']) == 2
        assert set(health['model']['configured']) == {'primary', 'fallback', 'device'}
    print("✓ test_model_unavailable_manual_only passed")


def test_storage_failure_maps_to_server_error():
    assert status_for(StorageError("disk I/O error")) == 500
    assert status_for(ItemIndexError("no item")) == 404
    assert status_for(InvalidImage("bad")) == 422
    print("✓ test_storage_failure_maps_to_server_error passed")


def main():
    """Run all tests."""
    print("=" * 60)
    print("Testing HTTP endpoint")
    print("=" * 60)

    tests = [
        test_list_seeded_containers,
        test_container_crud_and_errors,
        test_remove_container_requires_confirm,
        test_search_route,
        test_export_and_import,
        test_capture_status_and_camera_analyze,
        test_camera_stop_route,
        test_camera_unavailable_offers_manual_fallback,
        test_upload_route,
        test_upload_no_detections_route,
        test_model_unavailable_manual_only,
        test_storage_failure_maps_to_server_error,
    ]

    passed = 0
    failed = 0
    for test_fn in tests:
        try:
            test_fn()
            passed += 1
        except AssertionError as e:
            print(f"✗ {test_fn.__name__} FAILED: {e}")
            failed += 1
        except Exception as e:
            print(f"✗ {test_fn.__name__} ERROR: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print()
    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed, {passed + failed} total")
    print("=" * 60)
    return 0 if failed == 0 else 1


if __name__ == '__main__':
    sys.exit(main())
