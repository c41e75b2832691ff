from . import (
    health, operations, sites, students, teachers, courses,
    enrollments, payments, inventory, classrooms, roles
)

__all__ = [
    "health",
    "operations",
    "sites",
    "students",
    "teachers",
    "courses",
    "enrollments",
    "payments",
    "inventory",
    "classrooms",
    "roles",
]
