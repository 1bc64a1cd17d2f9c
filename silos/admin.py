from django.contrib import admin

from .models import Post, Silo, SiloPost


class SiloPostInline(admin.TabularInline):
    model = SiloPost
    fk_name = 'silo'
    extra = 0
    raw_id_fields = ('post', 'parent_post')


@admin.register(Silo)
class SiloAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'created_at')
    search_fields = ('name', 'slug')
    prepopulated_fields = {'slug': ('name',)}
    inlines = [SiloPostInline]


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ('title', 'slug', 'target_keyword', 'focus_keyword', 'published', 'updated_at')
    list_filter = ('published',)
    search_fields = ('title', 'slug', 'target_keyword', 'focus_keyword')
