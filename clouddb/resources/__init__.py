"""
clouddb.resources - Cloud Databases resources
==============================================

Objects for the resources hanging off an account:

- Instance: a database instance (root user, databases, users, deletion)
- Database: a database on an instance
- User: a database user on an instance
- Flavor: an instance size

"""

from clouddb.resources.base import Resource, escape
from clouddb.resources.database import Database
from clouddb.resources.user import User
from clouddb.resources.instance import Instance
from clouddb.resources.flavor import Flavor

__all__ = [
    "Resource",
    "escape",
    "Database",
    "User",
    "Instance",
    "Flavor",
]
