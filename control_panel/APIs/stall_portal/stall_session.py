from ...views import *


def stall_profile(stall):
    return {
        'id': stall.id,
        'counter_name': stall.counter_name,
        'participant_name': stall.participant_name,
        'mobile': stall.mobile,
        'is_verified': stall.is_verified,
    }


class StallSignInView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        try:
            mobile = digits_only(request.data.get('mobile'))
            password = request.data.get('password') or ''
            if not mobile or not password:
                return Response({'status': 'fail', 'message': 'Mobile number and password are required'}, status=status.HTTP_400_BAD_REQUEST)

            stall = Stall.objects.filter(mobile=mobile).first()
            if not stall or not stall.check_password(password):
                response_data = {'status': 'fail', 'message': 'Invalid mobile number or password'}
                save_api_log(request, "StallLogin", request.data, response_data, service_type="Stall Login")
                return Response(response_data, status=status.HTTP_401_UNAUTHORIZED)

            access_token, jti = create_stall_session_token(stall)
            StallLoginSession.objects.create(
                stall=stall,
                token_jti=jti,
                ip_address=client_ip(request),
                device_info=extract_device_information(request),
            )
            save_api_log(request, "StallLogin", request.data, {'status': 'success', 'stall_id': stall.id}, service_type="Stall Login")

            return Response({
                'status': 'success',
                'message': 'Login successful',
                'data': {
                    'access_token': access_token,
                    'token_type': 'Bearer',
                    'stall': stall_profile(stall),
                }
            }, status=status.HTTP_200_OK)
        except Exception as e:
            save_api_log(request, "StallLogin", request.data, {'status': 'error', 'message': str(e)}, service_type="Stall Login")
            return Response({'status': 'error', 'message': 'Internal server error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class StallSignOutView(APIView):
    authentication_classes = [StallJWTAuthentication]
    permission_classes = [IsStallSession]

    def post(self, request):
        session = request.auth
        session.is_logged_out = True
        session.logout_at = timezone.now()
        session.save(update_fields=['is_logged_out', 'logout_at'])
        return Response({'status': 'success', 'message': 'Logged out successfully'}, status=status.HTTP_200_OK)


class StallDashboardView(APIView):
    authentication_classes = [StallJWTAuthentication]
    permission_classes = [IsStallSession]

    def get(self, request):
        stall = request.user
        bills = list(stall.bills.values('id', 'items', 'total', 'status', 'delivery_status'))
        payments = list(stall.payments.values('payment_type', 'amount_paid'))

        recent = stall.bills.prefetch_related('sales_returns')[:10]
        return Response({
            'status': 'success',
            'message': 'Dashboard fetched successfully',
            'data': {
                'stall': stall_profile(stall),
                **ledger.stall_dashboard(bills, payments),
                'recent_bills': BillingTransactionSerializer(recent, many=True).data,
            }
        }, status=status.HTTP_200_OK)


class StallOrdersView(APIView):
    authentication_classes = [StallJWTAuthentication]
    permission_classes = [IsStallSession]

    def get(self, request):
        stall = request.user
        rows = get_or_fetch(
            'bills',
            lambda: list(BillingTransactionSerializer(
                stall.bills.select_related('stall', 'created_by').prefetch_related('sales_returns'), many=True
            ).data),
            'stall', stall.id,
        )

        delivery_status = request.query_params.get('delivery_status')
        if delivery_status:
            rows = [r for r in rows if r['delivery_status'] == delivery_status]

        error, page = paginate_rows(request, rows)
        if error:
            return error
        return Response({
            'status': 'success',
            'message': 'Orders fetched successfully' if rows else 'No orders yet',
            'data': page
        }, status=status.HTTP_200_OK)


class StallOrderDeliverView(APIView):
    authentication_classes = [StallJWTAuthentication]
    permission_classes = [IsStallSession]

    def put(self, request):
        bill_id = request.data.get('bill_id')
        if not is_positive_integer(bill_id):
            return Response({'status': 'fail', 'message': 'Valid bill_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        bill = BillingTransaction.objects.filter(id=int(bill_id), stall=request.user).first()
        if not bill:
            return Response({'status': 'fail', 'message': 'Order not found'}, status=status.HTTP_404_NOT_FOUND)
        if bill.delivery_status == 'delivered':
            return Response({'status': 'fail', 'message': 'Order is already delivered'}, status=status.HTTP_409_CONFLICT)

        bill.delivery_status = 'delivered'
        bill.save(update_fields=['delivery_status', 'updated_at'])
        invalidate('bills')
        save_api_log(request, "StallOrders", request.data, {'status': 'success', 'bill_id': bill.id}, service_type="Order Delivered")
        return Response({
            'status': 'success',
            'message': 'Order marked as delivered',
            'data': BillingTransactionSerializer(bill).data
        }, status=status.HTTP_200_OK)
