from catalog_seeder.services.storage.base import GameStore
from catalog_seeder.services.storage.supabase_store import SupabaseGameStore

__all__ = ["GameStore", "SupabaseGameStore"]
