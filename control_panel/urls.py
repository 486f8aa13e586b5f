from django.urls import path
from control_panel.APIs.stalls.stall import *
from control_panel.APIs.products.product import *
from control_panel.APIs.billing.bill import *
from control_panel.APIs.sales_returns.sales_return import *
from control_panel.APIs.registrations.registration import *
from control_panel.APIs.payments.payment import *
from control_panel.APIs.accounts.accounts_summary import *
from control_panel.APIs.panchayath.panchayath import *
from control_panel.APIs.food_coupon.food_coupon import *
from control_panel.APIs.stall_enquiry.enquiry_fields import *
from control_panel.APIs.stall_enquiry.enquiry import *
from control_panel.APIs.stall_portal.stall_session import *


urlpatterns = [
    # Stalls and products
    path('stalls/', StallManageView.as_view()),
    path('stalls/verify/', StallVerifyView.as_view()),
    path('stalls/registration-fee/', StallRegistrationFeeView.as_view()),
    path('stalls/sales-summary/', StallSalesSummaryView.as_view()),
    path('products/', ProductManageView.as_view()),

    # Billing
    path('bills/', BillManageView.as_view()),
    path('bills/mark-paid/', BillMarkPaidView.as_view()),
    path('sales-returns/', SalesReturnView.as_view()),

    # Accounts
    path('registrations/', RegistrationView.as_view()),
    path('payments/', PaymentView.as_view()),
    path('accounts/summary/', AccountsSummaryView.as_view()),

    # Survey
    path('panchayaths/', PanchayathManageView.as_view()),
    path('wards/', WardManageView.as_view()),

    # Food coupon
    path('food-options/', FoodOptionView.as_view()),
    path('food-coupon-bookings/', FoodCouponBookingView.as_view()),
    path('food-coupon-bookings/export/', FoodCouponBookingExportView.as_view()),

    # Stall enquiry
    path('stall-enquiry-fields/', StallEnquiryFieldView.as_view()),
    path('stall-enquiry-fields/reorder/', StallEnquiryFieldReorderView.as_view()),
    path('stall-enquiries/', StallEnquiryView.as_view()),
    path('stall-enquiries/verify/', StallEnquiryVerifyView.as_view()),
    path('stall-enquiries/export/', StallEnquiryExportView.as_view()),

    # Stall counter login
    path('stall/login/', StallSignInView.as_view()),
    path('stall/logout/', StallSignOutView.as_view()),
    path('stall/dashboard/', StallDashboardView.as_view()),
    path('stall/orders/', StallOrdersView.as_view()),
    path('stall/orders/deliver/', StallOrderDeliverView.as_view()),

    # Public site
    path('public/panchayaths/', PublicPanchayathListView.as_view()),
    path('public/wards/', PublicWardListView.as_view()),
    path('public/food-options/', PublicFoodOptionListView.as_view()),
    path('public/food-coupon-bookings/', PublicFoodCouponBookingView.as_view()),
    path('public/stall-enquiry-fields/', PublicStallEnquiryFieldListView.as_view()),
    path('public/stall-enquiries/', PublicStallEnquiryView.as_view()),
]
