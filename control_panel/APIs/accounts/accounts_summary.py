from ...views import *


def build_accounts_summary():
    bills = list(BillingTransaction.objects.values('stall_id', 'items', 'total', 'status'))
    payments = list(Payment.objects.values('stall_id', 'payment_type', 'amount_paid'))
    registrations = list(Registration.objects.values('registration_type', 'amount'))
    returns = list(SalesReturn.objects.values('return_amount'))

    summary = ledger.accounts_summary(bills, payments, registrations, returns)

    balances = []
    for stall in Stall.objects.only('id', 'counter_name').order_by('counter_name'):
        stall_bills = [b for b in bills if b['stall_id'] == stall.id]
        stall_payments = ledger.participant_payments(payments, stall.id)
        balances.append({
            'stall_id': stall.id,
            'counter_name': stall.counter_name,
            'bill_balance': ledger.money(ledger.stall_bill_balance(stall_bills, stall_payments)),
        })
    summary['stall_balances'] = balances
    summary['event_margin_percent'] = settings.EVENT_MARGIN_PERCENT
    return summary


class AccountsSummaryView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'accounts'

    def get(self, request):
        try:
            return Response({
                'status': 'success',
                'message': 'Accounts summary fetched successfully',
                'data': get_or_fetch('accounts', build_accounts_summary)
            }, status=status.HTTP_200_OK)
        except Exception as e:
            save_api_log(request, "Accounts", {}, {"status": "error", "message": str(e)}, service_type="Accounts Summary")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
