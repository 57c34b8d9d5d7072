"""
URL configuration for the storefront project.
"""
from django.contrib import admin
from django.urls import path

from shop.api.views import checkout_session_view, checkout_view, graphql_view, stripe_webhook_view

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/checkout/', checkout_view, name='checkout'),
    path('api/checkout/session/', checkout_session_view, name='checkout-session'),
    path('api/webhooks/stripe/', stripe_webhook_view, name='stripe-webhook'),
    path('graphql/', graphql_view, name='graphql'),
]
