"""Services package"""

from .blob_store import BlobStore
from .creator_service import CreatorService
from .favourites_service import FavouritesService
from .graph_assembler import ClientViewLoader
from .upload_session import UploadSession
from .user_profile_service import UserProfileService

__all__ = ["BlobStore", "CreatorService", "FavouritesService", "ClientViewLoader", "UploadSession", "UserProfileService"]
