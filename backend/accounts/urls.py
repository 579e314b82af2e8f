from django.urls import path

from .views import (
    CookieTokenRefreshView,
    GuestSessionView,
    LogoutView,
    MeView,
    ProfileView,
    UserDetailView,
)

urlpatterns = [
    path("guest/", GuestSessionView.as_view(), name="guest_session"),
    path("token/refresh/", CookieTokenRefreshView.as_view(), name="token_refresh"),
    path("logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),
    path("profile/", ProfileView.as_view(), name="profile"),
    path("users/<int:user_id>/", UserDetailView.as_view(), name="user_detail"),
]
