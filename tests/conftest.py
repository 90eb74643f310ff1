"""Shared fixtures for the task board tests."""

import sys
from pathlib import Path

import pytest

# Ensure the repo root (taskboard package, board_server) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskboard.board import TaskBoard
from taskboard.config import Config
from taskboard.store import CollectionStore


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "board.db")


@pytest.fixture
def store(db_path):
    return CollectionStore(db_path)


@pytest.fixture
def config(db_path):
    return Config(db_path=db_path, seed_user_password="seed-secret")


@pytest.fixture
def board(config):
    """Initialized board; the seed user already exists."""
    return TaskBoard.open(config)


@pytest.fixture
def project(board):
    return board.projects.create({"name": "Website"})


@pytest.fixture
def app(board):
    from board_server import create_app
    return create_app(board=board)


@pytest.fixture
def client(app):
    return app.test_client()
