# Task board: projects, workflow columns, tasks and their reference data
#
# Components:
#   schema.py     - Data model (Category, Tag, User, Project, Task, TaskPriority)
#   normalize.py  - Shared field normalization (text, status slugs, links, positions)
#   store.py      - SQLite-backed collection store
#   registries.py - Category, tag and user registries
#   projects.py   - Project registry and workflow column validation
#   tasks.py      - Task engine: CRUD, filtering, reorder, expansion, cascades
#   cascade.py    - Delete coordinator that clears dangling task references
#   board.py      - Wires the store and services together from a Config
#   config.py     - YAML / environment configuration
#   client.py     - HTTP client for the board API
