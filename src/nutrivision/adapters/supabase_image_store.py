"""Supabase storage adapter for meal photos."""

from dataclasses import dataclass
from uuid import uuid4

from supabase import Client

from nutrivision.domain.recognition import ImageFile
from nutrivision.services.meals import ImageStore


@dataclass
class SupabaseImageStore(ImageStore):
    """Uploads meal photos into a storage bucket and returns the object path."""

    client: Client
    bucket: str = "meal-images"

    def upload(self, user_id: str, image: ImageFile) -> str:
        """Store the image under the user's folder."""
        path = f"{user_id}/{uuid4()}.{image.extension}"
        self.client.storage.from_(self.bucket).upload(
            path,
            image.data,
            {
                "content-type": image.content_type,
                "cache-control": "3600",
                "upsert": "false",
            },
        )
        return path
