from ...views import *


class PaymentView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'accounts'

    def get(self, request):
        try:
            rows = get_or_fetch('payments', lambda: list(PaymentSerializer(Payment.objects.select_related('stall'), many=True).data))

            payment_type = request.query_params.get('payment_type')
            if payment_type:
                rows = [r for r in rows if r['payment_type'] == payment_type]

            stall_id = request.query_params.get('stall_id')
            if is_positive_integer(stall_id):
                rows = [r for r in rows if r['stall'] == int(stall_id)]

            error, page = paginate_rows(request, rows)
            if error:
                return error
            return Response({
                'status': 'success',
                'message': 'Payments fetched successfully' if rows else 'No payments recorded',
                'data': {**page, 'event_margin_percent': settings.EVENT_MARGIN_PERCENT}
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def post(self, request):
        save_api_log(request, "Accounts", request.data, {"status": "in_progress"}, service_type="Payment")
        try:
            payment_type = request.data.get('payment_type')
            if payment_type == 'participant':
                with transaction.atomic():
                    payment = self._participant_payment(request)
            elif payment_type == 'other':
                payment = self._other_payment(request)
            else:
                return Response({'status': 'fail', 'message': 'payment_type must be participant or other'}, status=status.HTTP_400_BAD_REQUEST)

            if isinstance(payment, Response):
                return payment

            invalidate('payments')
            record_admin_activity(request, 'create_payment', f'{payment.get_payment_type_display()} of {payment.amount_paid} recorded')
            response_data = {
                'status': 'success',
                'message': 'Payment recorded successfully',
                'data': PaymentSerializer(payment).data
            }
            save_api_log(request, "Accounts", request.data, response_data, service_type="Payment")
            return Response(response_data, status=status.HTTP_201_CREATED)
        except Exception as e:
            save_api_log(request, "Accounts", request.data, {"status": "error", "message": str(e)}, service_type="Payment")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def _participant_payment(self, request):
        stall_id = request.data.get('stall_id')
        if not is_positive_integer(stall_id):
            return Response({'status': 'fail', 'message': 'Select a stall for the participant payment'}, status=status.HTTP_400_BAD_REQUEST)

        stall = Stall.objects.select_for_update().filter(id=int(stall_id)).first()
        if not stall:
            return Response({'status': 'fail', 'message': 'Stall not found'}, status=status.HTTP_404_NOT_FOUND)

        billed_input = request.data.get('total_billed')
        if billed_input in (None, ''):
            # Sales net of returns, less what earlier payouts already settled.
            billed = (
                (stall.bills.aggregate(total=Sum('total'))['total'] or Decimal('0'))
                - (stall.sales_returns.aggregate(total=Sum('return_amount'))['total'] or Decimal('0'))
                - (stall.payments.filter(payment_type='participant').aggregate(total=Sum('total_billed'))['total'] or Decimal('0'))
            )
        else:
            billed = parse_amount(billed_input, allow_zero=False)
            if billed is None:
                return Response({'status': 'fail', 'message': 'Billed amount must be a positive number'}, status=status.HTTP_400_BAD_REQUEST)
        if billed <= 0:
            return Response({'status': 'fail', 'message': 'This stall has no outstanding billed amount to pay out'}, status=status.HTTP_400_BAD_REQUEST)

        deduction, payable = ledger.participant_payout(billed, settings.EVENT_MARGIN_PERCENT)
        return Payment.objects.create(
            payment_type='participant',
            stall=stall,
            total_billed=ledger.money(billed),
            margin_deducted=ledger.money(deduction),
            amount_paid=ledger.money(payable),
            narration=(request.data.get('narration') or '').strip() or f'Payout to {stall.counter_name}',
            created_by=request.user,
        )

    def _other_payment(self, request):
        amount = parse_amount(request.data.get('amount_paid'), allow_zero=False)
        narration = (request.data.get('narration') or '').strip()
        if amount is None:
            return Response({'status': 'fail', 'message': 'Amount must be a positive number'}, status=status.HTTP_400_BAD_REQUEST)
        if not narration:
            return Response({'status': 'fail', 'message': 'Narration is required for other payments'}, status=status.HTTP_400_BAD_REQUEST)

        return Payment.objects.create(
            payment_type='other',
            amount_paid=ledger.money(amount),
            narration=narration,
            created_by=request.user,
        )

    def delete(self, request):
        payment_id = request.data.get('payment_id') or request.query_params.get('payment_id')
        if not is_positive_integer(payment_id):
            return Response({'status': 'fail', 'message': 'Valid payment_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        deleted, _ = Payment.objects.filter(id=int(payment_id)).delete()
        if not deleted:
            return Response({'status': 'fail', 'message': 'Payment not found'}, status=status.HTTP_404_NOT_FOUND)

        invalidate('payments')
        record_admin_activity(request, 'delete_payment', f'Payment {payment_id} deleted', payload={'payment_id': payment_id})
        return Response({'status': 'success', 'message': 'Payment deleted successfully'}, status=status.HTTP_200_OK)
