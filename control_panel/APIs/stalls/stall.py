from ...views import *


def paid_stall_ids():
    return set(
        Payment.objects.filter(payment_type='participant', stall__isnull=False)
        .values_list('stall_id', flat=True)
    )


def cached_stalls():
    def fetch():
        stalls = Stall.objects.select_related('panchayath', 'ward')
        return list(StallSerializer(stalls, many=True, context={'paid_stall_ids': paid_stall_ids()}).data)
    return get_or_fetch('stalls', fetch)


def delete_stall_cascade(stall):
    """
    Removes everything recorded against a stall, dependants first, then the
    stall itself. Returns the number of rows removed per kind.
    """
    with transaction.atomic():
        removed = {
            'sales_returns': SalesReturn.objects.filter(Q(stall=stall) | Q(bill__stall=stall)).delete()[0],
            'bills': BillingTransaction.objects.filter(stall=stall).delete()[0],
            'products': Product.objects.filter(stall=stall).delete()[0],
            'payments': Payment.objects.filter(stall=stall).delete()[0],
            'sessions': StallLoginSession.objects.filter(stall=stall).delete()[0],
        }
        stall.delete()
    return removed


class StallManageView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'food_court'

    def get(self, request):
        try:
            rows = cached_stalls()

            verified = request.query_params.get('is_verified')
            if verified in ('true', 'false'):
                rows = [r for r in rows if r['is_verified'] == (verified == 'true')]

            panchayath_id = request.query_params.get('panchayath_id')
            if is_positive_integer(panchayath_id):
                rows = [r for r in rows if r['panchayath'] == int(panchayath_id)]

            search = request.query_params.get('search', '').strip().lower()
            if search:
                rows = [
                    r for r in rows
                    if search in r['counter_name'].lower()
                    or search in r['participant_name'].lower()
                    or search in r['mobile']
                ]

            error, page = paginate_rows(request, rows, order="asc")
            if error:
                return error
            return Response({
                'status': 'success',
                'message': 'Stalls fetched successfully' if rows else 'No stalls found',
                'data': page
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def post(self, request):
        save_api_log(request, "FoodCourt", request.data, {"status": "in_progress"}, service_type="Stall Creation")
        try:
            serializer = StallSerializer(data=request.data)
            if not serializer.is_valid():
                save_api_log(request, "FoodCourt", request.data, {"status": "fail", "errors": serializer.errors}, service_type="Stall Creation")
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            stall = serializer.save()
            invalidate('stalls')
            record_admin_activity(request, 'create_stall', f'Stall {stall.counter_name} registered')
            return Response({
                'status': 'success',
                'message': 'Stall registered successfully',
                'data': StallSerializer(stall).data
            }, status=status.HTTP_201_CREATED)
        except IntegrityError:
            return Response({'status': 'fail', 'message': 'A stall with this mobile number already exists.'}, status=status.HTTP_409_CONFLICT)
        except Exception as e:
            save_api_log(request, "FoodCourt", request.data, {"status": "error", "message": str(e)}, service_type="Stall Creation")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def put(self, request):
        try:
            stall_id = request.data.get('stall_id')
            if not is_positive_integer(stall_id):
                return Response({'status': 'fail', 'message': 'Valid stall_id is required'}, status=status.HTTP_400_BAD_REQUEST)

            stall = Stall.objects.filter(id=int(stall_id)).first()
            if not stall:
                return Response({'status': 'fail', 'message': 'Stall not found'}, status=status.HTTP_404_NOT_FOUND)

            serializer = StallSerializer(stall, data=request.data, partial=True)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            serializer.save()
            invalidate('stalls')
            record_admin_activity(request, 'update_stall', f'Stall {stall.counter_name} updated')
            return Response({
                'status': 'success',
                'message': 'Stall updated successfully',
                'data': serializer.data
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def delete(self, request):
        save_api_log(request, "FoodCourt", request.data, {"status": "in_progress"}, service_type="Stall Deletion")
        try:
            stall_id = request.data.get('stall_id') or request.query_params.get('stall_id')
            if not is_positive_integer(stall_id):
                return Response({'status': 'fail', 'message': 'Valid stall_id is required'}, status=status.HTTP_400_BAD_REQUEST)

            stall = Stall.objects.filter(id=int(stall_id)).first()
            if not stall:
                return Response({'status': 'fail', 'message': 'Stall not found'}, status=status.HTTP_404_NOT_FOUND)

            counter_name = stall.counter_name
            removed = delete_stall_cascade(stall)
            invalidate('stalls')
            record_admin_activity(request, 'delete_stall', f'Stall {counter_name} deleted with its records', payload={'stall_id': stall_id, 'removed': removed})

            response_data = {
                'status': 'success',
                'message': 'Stall and all related records deleted',
                'data': removed
            }
            save_api_log(request, "FoodCourt", request.data, response_data, service_type="Stall Deletion")
            return Response(response_data, status=status.HTTP_200_OK)
        except Exception as e:
            save_api_log(request, "FoodCourt", request.data, {"status": "error", "message": str(e)}, service_type="Stall Deletion")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class StallVerifyView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'food_court'

    def put(self, request):
        stall_id = request.data.get('stall_id')
        if not is_positive_integer(stall_id):
            return Response({'status': 'fail', 'message': 'Valid stall_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        stall = Stall.objects.filter(id=int(stall_id)).first()
        if not stall:
            return Response({'status': 'fail', 'message': 'Stall not found'}, status=status.HTTP_404_NOT_FOUND)
        if stall.is_verified:
            return Response({'status': 'fail', 'message': 'Stall is already verified'}, status=status.HTTP_409_CONFLICT)

        stall.is_verified = True
        stall.save(update_fields=['is_verified', 'updated_at'])
        invalidate('stalls')
        record_admin_activity(request, 'verify_stall', f'Stall {stall.counter_name} verified')
        return Response({
            'status': 'success',
            'message': 'Stall verified successfully',
            'data': StallSerializer(stall).data
        }, status=status.HTTP_200_OK)


class StallRegistrationFeeView(APIView):
    """Paid / unpaid registration fee lists and the "cash received" action."""
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'accounts'

    def get(self, request):
        rows = cached_stalls()
        paid = [r for r in rows if r['registration_fee_paid']]
        unpaid = [r for r in rows if not r['registration_fee_paid']]
        return Response({
            'status': 'success',
            'message': 'Registration fee status fetched successfully',
            'data': {
                'paid': paid,
                'unpaid': unpaid,
                'paid_count': len(paid),
                'unpaid_count': len(unpaid),
            }
        }, status=status.HTTP_200_OK)

    def post(self, request):
        save_api_log(request, "Accounts", request.data, {"status": "in_progress"}, service_type="Registration Fee")
        try:
            stall_id = request.data.get('stall_id')
            if not is_positive_integer(stall_id):
                return Response({'status': 'fail', 'message': 'Valid stall_id is required'}, status=status.HTTP_400_BAD_REQUEST)

            with transaction.atomic():
                stall = Stall.objects.select_for_update().filter(id=int(stall_id)).first()
                if not stall:
                    return Response({'status': 'fail', 'message': 'Stall not found'}, status=status.HTTP_404_NOT_FOUND)
                if stall.registration_fee_paid:
                    return Response({'status': 'fail', 'message': 'Registration fee already received for this stall'}, status=status.HTTP_409_CONFLICT)
                if stall.registration_fee <= 0:
                    return Response({'status': 'fail', 'message': 'No registration fee is set for this stall'}, status=status.HTTP_400_BAD_REQUEST)

                payment = Payment.objects.create(
                    payment_type='participant',
                    stall=stall,
                    total_billed=None,
                    margin_deducted=Decimal('0'),
                    amount_paid=stall.registration_fee,
                    narration=f'Registration fee received from {stall.counter_name}',
                    created_by=request.user,
                )

            invalidate('payments')
            record_admin_activity(request, 'registration_fee_received', f'Registration fee {stall.registration_fee} received from {stall.counter_name}')
            response_data = {
                'status': 'success',
                'message': 'Registration fee marked as received',
                'data': PaymentSerializer(payment).data
            }
            save_api_log(request, "Accounts", request.data, response_data, service_type="Registration Fee")
            return Response(response_data, status=status.HTTP_201_CREATED)
        except Exception as e:
            save_api_log(request, "Accounts", request.data, {"status": "error", "message": str(e)}, service_type="Registration Fee")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class StallSalesSummaryView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'billing'

    def get(self, request):
        stall_id = request.query_params.get('stall_id')
        if not is_positive_integer(stall_id):
            return Response({'status': 'fail', 'message': 'Valid stall_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        stall = Stall.objects.filter(id=int(stall_id)).first()
        if not stall:
            return Response({'status': 'fail', 'message': 'Stall not found'}, status=status.HTTP_404_NOT_FOUND)

        def fetch():
            bills = list(stall.bills.values('items', 'total', 'status', 'delivery_status'))
            payments = list(stall.payments.values('payment_type', 'amount_paid'))
            summary = ledger.stall_sales_summary(bills)
            summary['bill_balance'] = ledger.stall_dashboard(bills, payments)['bill_balance']
            return summary

        summary = get_or_fetch('sales_summary', fetch, 'stall', stall.id)
        return Response({
            'status': 'success',
            'message': 'Sales summary fetched successfully',
            'data': {
                'stall': {'id': stall.id, 'counter_name': stall.counter_name, 'participant_name': stall.participant_name},
                **summary,
            }
        }, status=status.HTTP_200_OK)
