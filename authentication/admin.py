from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import User
from .models import UserProfile, AuthToken


class UserProfileInline(admin.StackedInline):
    model = UserProfile
    can_delete = False
    fk_name = 'user'
    filter_horizontal = ('friends',)
    fieldsets = (
        (None, {'fields': ('gender', 'date_of_birth', 'occupation', 'about')}),
        ('Images', {'fields': ('profile_picture', 'banner_image')}),
        ('Social', {'fields': ('friends', 'unseen_requests', 'unseen_messages')}),
    )


class SocialUserAdmin(BaseUserAdmin):
    inlines = (UserProfileInline,)
    list_display = ('id', 'email', 'first_name', 'last_name', 'friends_count', 'is_active', 'date_joined')
    list_select_related = ('profile',)
    search_fields = ('email', 'first_name', 'last_name')

    @admin.display(description='Friends')
    def friends_count(self, obj):
        return obj.profile.friends.count()


admin.site.unregister(User)
admin.site.register(User, SocialUserAdmin)


@admin.register(AuthToken)
class AuthTokenAdmin(admin.ModelAdmin):
    list_display = ('user', 'token_type', 'created_at', 'expires_at', 'is_used', 'still_valid')
    list_filter = ('token_type', 'is_used')
    search_fields = ('user__email',)
    readonly_fields = ('token', 'created_at')

    @admin.display(boolean=True, description='Valid')
    def still_valid(self, obj):
        return obj.is_valid()
