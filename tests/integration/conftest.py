# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures for integration tests.

Provides a small Rails + React project on disk and a loader that turns it
into the ParsedFile batch the engine consumes.
"""

import textwrap
from pathlib import Path
from typing import Dict, List

import pytest

from callgraph_engine.models import ParsedFile

LANGUAGE_BY_SUFFIX = {
    ".html.erb": "erb",
    ".rb": "ruby",
    ".tsx": "tsx",
    ".ts": "typescript",
    ".js": "javascript",
}

PROJECT_FILES: Dict[str, str] = {
    "app/models/user.rb": """
        class User < ApplicationRecord
          def self.active
            where(active: true)
          end

          def full_name
            "#{first_name} #{last_name}"
          end

          def first_name
            read_attribute(:first_name)
          end

          def last_name
            read_attribute(:last_name)
          end
        end
        """,
    "app/controllers/users_controller.rb": """
        class UsersController < ApplicationController
          def index
            @users = User.active
            log_access
          end

          private

          def log_access
            Rails.logger.info(current_user.full_name)
          end
        end
        """,
    "app/views/users/index.html.erb": """
        <h1><%= t("users.title") %></h1>
        <% @users.each do |user| %>
          <p><%= user.full_name %></p>
        <% end %>
        """,
    "app/javascript/api.ts": """
        export async function fetchUsers(): Promise<User[]> {
          const response = await fetch('/users');
          return parseUsers(response);
        }

        function parseUsers(response: Response): User[] {
          return [];
        }
        """,
    "app/javascript/UserList.tsx": """
        import React, { useEffect, useState } from 'react';
        import { fetchUsers } from './api';

        export const UserList: React.FC = () => {
          const [users, setUsers] = useState([]);
          useEffect(() => {
            fetchUsers().then(setUsers);
          }, []);
          return <ul>{users.length}</ul>;
        };
        """,
}


def language_for(path: str) -> str:
    for suffix, language in LANGUAGE_BY_SUFFIX.items():
        if path.endswith(suffix):
            return language
    return "unknown"


def load_project(root: Path) -> List[ParsedFile]:
    """Read every file under root into ParsedFiles with root-relative paths."""
    files = []
    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        relative = path.relative_to(root).as_posix()
        files.append(
            ParsedFile.from_content(relative, language_for(relative), path.read_text(encoding="utf-8"))
        )
    return files


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """Create a representative Rails + React project for integration testing.

    Contains:
    - A model whose methods call each other through string interpolation
    - A controller calling into the model, with a private helper
    - An ERB view calling a model method
    - A TypeScript API module and a TSX component importing from it

    Returns:
        Path to the project root directory
    """
    project_root = tmp_path / "sample_project"
    for relative, source in PROJECT_FILES.items():
        target = project_root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
    return project_root


@pytest.fixture
def project_files(sample_project: Path) -> List[ParsedFile]:
    return load_project(sample_project)
