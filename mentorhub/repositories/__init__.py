from mentorhub.repositories.channels import ChannelRepository
from mentorhub.repositories.groups import GroupRepository
from mentorhub.repositories.relationships import RelationshipRepository
from mentorhub.repositories.users import UserRepository

__all__ = [
    "ChannelRepository",
    "GroupRepository",
    "RelationshipRepository",
    "UserRepository",
]
