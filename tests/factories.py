"""In-memory stand-ins for the data backend and the S3 client."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class FakeProfile:
    id: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class FakeBackend:
    def __init__(self):
        self.profiles = {}
        self.relationships = []
        self.avatars = {}
        self.lookup_error = None
        self.calls = []

    def add_profile(self, user_id, role, first_name=None):
        self.profiles[user_id] = FakeProfile(user_id, role, first_name)

    def link(self, parent_id, player_id):
        self.relationships.append((parent_id, player_id))

    def get_profile(self, user_id):
        self.calls.append(("get_profile", user_id))
        return self.profiles.get(user_id)

    def query_relationships_by_parent(self, parent_id):
        self.calls.append(("query_relationships_by_parent", parent_id))
        return [player for parent, player in self.relationships if parent == parent_id]

    def privileged_lookup_parent_for_player(self, player_id):
        self.calls.append(("privileged_lookup_parent_for_player", player_id))
        if self.lookup_error is not None:
            raise self.lookup_error
        for parent, player in self.relationships:
            if player == player_id:
                return parent
        return None

    def list_avatar_files(self, user_id):
        self.calls.append(("list_avatar_files", user_id))
        return list(self.avatars.get(user_id, []))

    def get_public_url(self, path):
        return f"https://cdn.test/profile-photos/{path}"


class FakeS3Client:
    def __init__(self):
        self.objects = {}

    def list_objects_v2(self, Bucket, Prefix, MaxKeys=1000):
        keys = sorted(k for (b, k) in self.objects if b == Bucket and k.startswith(Prefix))
        return {"Contents": [{"Key": k} for k in keys[:MaxKeys]]}

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None):
        self.objects[(bucket, key)] = fileobj.read()

    def delete_object(self, Bucket, Key):
        self.objects.pop((Bucket, Key), None)
