from rest_framework import permissions


class IsOwner(permissions.BasePermission):
    """Object-level check against the author of a post, comment or reply."""
    message = "You can only change your own content."

    def has_object_permission(self, request, view, obj):
        owner_id = getattr(obj, 'creator_id', None) or getattr(obj, 'user_id', None)
        return owner_id is not None and owner_id == request.user.id


class IsOwnerOrReadOnly(IsOwner):
    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return super().has_object_permission(request, view, obj)
