from django.contrib import admin
from .models import Chat, ChatMember, ChatMessage


class ChatMemberInline(admin.TabularInline):
    model = ChatMember
    extra = 0
    readonly_fields = ('joined_at', 'last_activity_at')


@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    list_display = ('id', 'created_at', 'updated_at')
    inlines = [ChatMemberInline]


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'chat', 'user', 'created_at')
    search_fields = ('user__username', 'message')
    readonly_fields = ('created_at',)
