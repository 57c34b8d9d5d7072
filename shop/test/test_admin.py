"""
Tests for the edition admin.
"""
from django.contrib.admin.sites import AdminSite
from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase

from shop.admin import ArtworkEditionAdmin, ArtworkEditionInline
from shop.infra.models import ArtworkEditionORM, ArtworkORM
from shop.test.factories import create_edition


class ArtworkEditionAdminTest(TestCase):
    """Editions with sales keep their identity."""

    def setUp(self):
        site = AdminSite()
        self.admin = ArtworkEditionAdmin(ArtworkEditionORM, site)
        self.inline = ArtworkEditionInline(ArtworkORM, site)
        user = get_user_model().objects.create_superuser("admin", "admin@example.com", "secret")
        self.request = RequestFactory().get("/admin/")
        self.request.user = user

    def test_sold_edition_cannot_be_deleted(self):
        edition = create_edition(edition_limit=5, editions_sold=1)

        self.assertFalse(self.admin.has_delete_permission(self.request, edition))
        self.assertIn("size", self.admin.get_readonly_fields(self.request, edition))

    def test_unsold_edition_editable(self):
        edition = create_edition(edition_limit=5)

        self.assertTrue(self.admin.has_delete_permission(self.request, edition))
        self.assertNotIn("size", self.admin.get_readonly_fields(self.request, edition))

    def test_no_bulk_delete(self):
        self.assertNotIn("delete_selected", self.admin.get_actions(self.request))

    def test_inline_follows_artwork_sales(self):
        sold = create_edition(edition_limit=5, editions_sold=2)
        unsold = create_edition(title="Quiet Field", edition_limit=5)

        self.assertFalse(self.inline.has_delete_permission(self.request, sold.artwork))
        self.assertIn("size", self.inline.get_readonly_fields(self.request, sold.artwork))
        self.assertTrue(self.inline.has_delete_permission(self.request, unsold.artwork))
        self.assertNotIn("size", self.inline.get_readonly_fields(self.request, unsold.artwork))
