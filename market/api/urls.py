# market/api/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    ServiceCategoryViewSet, TaskerServiceViewSet, BookingViewSet, JobViewSet, JobApplicationViewSet,
    ReviewViewSet, ConversationViewSet, NotificationViewSet, WalletRefundViewSet,
    signup, verify_otp, resend_otp, login, logout, me, tasker_reviews,
    personal_info, addresses, address_detail, tasker_profile, profile_completion,
    finance_overview, finance_transactions, finance_earnings, wallet_history,
)

router = DefaultRouter()
router.register(r'categories', ServiceCategoryViewSet, basename='categories')
router.register(r'services', TaskerServiceViewSet, basename='services')
router.register(r'bookings', BookingViewSet, basename='bookings')
router.register(r'jobs', JobViewSet, basename='jobs')
router.register(r'applications', JobApplicationViewSet, basename='applications')
router.register(r'reviews', ReviewViewSet, basename='reviews')
router.register(r'conversations', ConversationViewSet, basename='conversations')
router.register(r'notifications', NotificationViewSet, basename='notifications')
router.register(r'wallet/refunds', WalletRefundViewSet, basename='wallet-refunds')

urlpatterns = [
    path('', include(router.urls)),
    path('auth/signup/', signup, name='auth-signup'),
    path('auth/verify-otp/', verify_otp, name='auth-verify-otp'),
    path('auth/resend-otp/', resend_otp, name='auth-resend-otp'),
    path('auth/login/', login, name='jwt-login'),
    path('auth/refresh/', TokenRefreshView.as_view(), name='jwt-refresh'),
    path('auth/logout/', logout, name='jwt-logout'),
    path('auth/me/', me, name='auth-me'),
    path('taskers/<int:tasker_id>/reviews/', tasker_reviews, name='tasker-reviews'),
    path('profile/', personal_info, name='profile-personal-info'),
    path('profile/addresses/', addresses, name='profile-addresses'),
    path('profile/addresses/<int:address_id>/', address_detail, name='profile-address-detail'),
    path('profile/tasker/', tasker_profile, name='profile-tasker'),
    path('profile/completion/', profile_completion, name='profile-completion'),
    path('finance/', finance_overview, name='finance-overview'),
    path('finance/transactions/', finance_transactions, name='finance-transactions'),
    path('finance/earnings/', finance_earnings, name='finance-earnings'),
    path('wallet/history/', wallet_history, name='wallet-history'),
]
