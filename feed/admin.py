from django.contrib import admin
from .models import Comment, CommentLike, Post, PostLike, Reply, ReplyLike


class CommentInline(admin.TabularInline):
    model = Comment
    extra = 0
    fields = ('user', 'content', 'created_at')
    readonly_fields = ('created_at',)


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ('id', 'creator', 'privacy', 'created_at', 'updated_at')
    list_filter = ('privacy', 'created_at')
    search_fields = ('creator__username', 'content')
    readonly_fields = ('created_at', 'updated_at', 'edited_at')
    inlines = [CommentInline]
    list_per_page = 50


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ('id', 'post', 'user', 'created_at')
    search_fields = ('user__username', 'content')


@admin.register(Reply)
class ReplyAdmin(admin.ModelAdmin):
    list_display = ('id', 'comment', 'user', 'created_at')
    search_fields = ('user__username', 'content')


admin.site.register(PostLike)
admin.site.register(CommentLike)
admin.site.register(ReplyLike)
