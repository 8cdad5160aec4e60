"""
Create-user command - add a user and print an API token for local use.
"""
import logging
import os

from taskory.__main__ import Command
from taskory.auth.dependencies import generate_api_token, hash_token
from taskory.database import TaskoryDatabase

logger = logging.getLogger(__name__)


class CreateUserCommand(Command):
    """Create a user (or rotate an existing user's token) and print the API token."""

    @classmethod
    def get_name(cls) -> str:
        return "create-user"

    @classmethod
    def add_arguments(cls, parser):
        parser.add_argument("--name", required=True, help="Display name, used for @mentions")
        parser.add_argument("--email", required=True, help="Email address")
        parser.add_argument(
            "--organization",
            metavar="NAME",
            default=None,
            help="Also create an organization owned by the user"
        )
        parser.add_argument(
            "--database-path",
            default=None,
            help="Path to database file (overrides TASKORY_DB_PATH)"
        )

    def init(self):
        super().init()
        db_path = os.path.abspath(self.args.database_path) if self.args.database_path else None
        self.db = TaskoryDatabase(db_path)

    def run(self) -> int:
        token = generate_api_token()
        user = self.db.users.get_by_email(self.args.email)
        if user:
            self.db.users.set_token_hash(user["id"], hash_token(token))
            logger.info(f"Rotated token for existing user {user['id']}")
            user_id = user["id"]
        else:
            user_id = self.db.users.create(self.args.name, self.args.email, hash_token(token))

        if self.args.organization:
            organization_id = self.db.organizations.create(self.args.organization, user_id)
            print(f"organization_id={organization_id}")

        print(f"user_id={user_id}")
        print(f"token={token}")
        return 0
