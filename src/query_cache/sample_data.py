"""Sample catalog: users, their posts and teams.

Backs the default API app and the demo script so the service can be tried
without wiring a real data source.
"""

from datetime import date

from query_cache.entities import FieldSpec, FieldType, ResourceSchema, SortClause
from query_cache.repositories import MemoryDataSource, Relation
from query_cache.services import ResourceRegistry

TEAMS = [
    {"id": 1, "name": "Platform"},
    {"id": 2, "name": "Payments"},
    {"id": 3, "name": "Search"},
]

USERS = [
    {"id": 1, "name": "Alice", "email": "alice@example.com", "age": 34, "active": True, "team_id": 1, "joined": date(2019, 3, 1), "score": 91.5},
    {"id": 2, "name": "Bob", "email": "bob@example.com", "age": 27, "active": True, "team_id": 2, "joined": date(2020, 6, 15), "score": 78.0},
    {"id": 3, "name": "Carol", "email": "carol@example.com", "age": 45, "active": False, "team_id": 1, "joined": date(2015, 1, 20), "score": 88.25},
    {"id": 4, "name": "Dave", "email": "dave@example.com", "age": 31, "active": True, "team_id": 3, "joined": date(2021, 9, 5), "score": 66.0},
    {"id": 5, "name": "Eve", "email": "eve@example.com", "age": 29, "active": False, "team_id": 2, "joined": date(2022, 2, 11), "score": 72.5},
    {"id": 6, "name": "Frank", "email": "frank@example.com", "age": 52, "active": True, "team_id": 3, "joined": date(2012, 11, 30), "score": 95.0},
    {"id": 7, "name": "Grace", "email": "grace@example.com", "age": 38, "active": True, "team_id": 1, "joined": date(2018, 4, 22), "score": 83.0},
    {"id": 8, "name": "Heidi", "email": "heidi@example.com", "age": 24, "active": True, "team_id": 2, "joined": date(2023, 7, 3), "score": 61.75},
    {"id": 9, "name": "Ivan", "email": "ivan@example.com", "age": 41, "active": False, "team_id": 3, "joined": date(2016, 10, 9), "score": 70.0},
    {"id": 10, "name": "Khalid", "email": "khalid@example.com", "age": 36, "active": True, "team_id": 1, "joined": date(2017, 5, 14), "score": 89.0},
    {"id": 11, "name": "Alan", "email": "alan@example.com", "age": 58, "active": True, "team_id": 2, "joined": date(2010, 8, 18), "score": 99.0},
    {"id": 12, "name": "Salma", "email": "salma@example.com", "age": 26, "active": True, "team_id": 3, "joined": date(2024, 1, 8), "score": 80.5},
]

POSTS = [
    {"id": 100, "user_id": 1, "title": "Cache keys that never collide"},
    {"id": 101, "user_id": 1, "title": "Paging without drift"},
    {"id": 102, "user_id": 3, "title": "Why sort before slicing"},
    {"id": 103, "user_id": 11, "title": "Stampedes and single-flight"},
]

USER_SCHEMA = ResourceSchema.create(
    name="users",
    fields=[
        FieldSpec("id", FieldType.INTEGER),
        FieldSpec("name", FieldType.STRING),
        FieldSpec("email", FieldType.STRING, case_sensitive=True),
        FieldSpec("age", FieldType.INTEGER),
        FieldSpec("active", FieldType.BOOLEAN),
        FieldSpec("team_id", FieldType.INTEGER),
        FieldSpec("joined", FieldType.DATE),
        FieldSpec("score", FieldType.FLOAT),
    ],
    relations=["posts", "team"],
    default_sort=[SortClause("id")],
)

POST_SCHEMA = ResourceSchema.create(
    name="posts",
    fields=[
        FieldSpec("id", FieldType.INTEGER),
        FieldSpec("user_id", FieldType.INTEGER),
        FieldSpec("title", FieldType.STRING),
    ],
    relations=["author"],
    default_sort=[SortClause("id")],
)


def build_registry() -> ResourceRegistry:
    """Register the sample users and posts resources."""
    registry = ResourceRegistry()
    registry.register(
        USER_SCHEMA,
        MemoryDataSource.create(
            records=USERS,
            schema=USER_SCHEMA,
            relations={
                "posts": Relation(records=POSTS, local_key="id", foreign_key="user_id"),
                "team": Relation(records=TEAMS, local_key="team_id", many=False, required=True),
            },
        ),
    )
    registry.register(
        POST_SCHEMA,
        MemoryDataSource.create(
            records=POSTS,
            schema=POST_SCHEMA,
            relations={"author": Relation(records=USERS, local_key="user_id", many=False, required=True)},
        ),
    )
    return registry
