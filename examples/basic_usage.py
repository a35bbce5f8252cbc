"""
Example: Basic Cloud Databases usage with clouddb
=================================================

This example shows how to manage instances, databases and users.
"""

import logging

from clouddb import Connection, ItemNotFound


def example_list():
    """List instances and flavors."""
    with Connection(username="USER", api_key="API_KEY", region="ord") as dbaas:
        for inst in dbaas.list_instances():
            print(inst["id"], inst["name"], inst["status"])

        for flavor in dbaas.list_flavors_detail():
            print(flavor["id"], flavor["name"], flavor["ram"], flavor["vcpus"])


def example_create():
    """Create an instance with a database and a user, then tear it down."""
    # Reads from environment variables: CLOUDDB_USERNAME, CLOUDDB_API_KEY, CLOUDDB_REGION
    with Connection() as dbaas:
        flavor_ref = dbaas.list_flavors()[0]["links"][0]["href"]
        inst = dbaas.create_instance(
            flavor_ref=flavor_ref,
            name="test_instance",
            volume=1,
            databases=[{"name": "testdb"}],
        )
        print(f"Created {inst.id} ({inst.status})")

        inst.create_database("reporting", character_set="utf8")
        inst.create_user("test", "secret", ["testdb", "reporting"])
        print("Databases:", inst.list_databases())
        print("Users:", inst.list_users())

        inst.get_user("test").destroy()
        inst.get_database("reporting").destroy()
        inst.destroy()

        try:
            inst.refresh()
        except ItemNotFound:
            print("Instance is gone")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    # Uncomment the example you want to run
    # example_list()
    # example_create()

    print("Set up your environment variables and uncomment an example to run.")
    print("Required: CLOUDDB_USERNAME, CLOUDDB_API_KEY, CLOUDDB_REGION")
