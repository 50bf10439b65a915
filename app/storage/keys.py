import uuid


def look_cover_key(user_id: str, lookbook_id: str, ext: str = "png") -> str:
    return f"generated-looks/{user_id}/{lookbook_id}.{ext}"


def item_image_key(user_id: str, ext: str = "jpg") -> str:
    return f"clothing-images/{user_id}/{uuid.uuid4().hex}.{ext}"


def avatar_key(user_id: str) -> str:
    return f"avatars/{user_id}/avatar.png"
