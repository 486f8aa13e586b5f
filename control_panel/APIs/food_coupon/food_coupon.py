from ...views import *

MSG_FILL_ALL_FIELDS = "എല്ലാ ഫീൽഡുകളും പൂരിപ്പിക്കുക"
MSG_INVALID_MOBILE = "സാധുവായ 10 അക്ക മൊബൈൽ നമ്പർ നൽകുക"
MSG_BOOKING_SUCCESS = "ബുക്കിംഗ് വിജയകരമായി!"
MSG_BOOKING_SUCCESS_DETAIL = "നിങ്ങളുടെ ഫുഡ് കൂപ്പൺ ബുക്ക് ചെയ്തു."
MSG_BOOKING_FAILED = "ബുക്കിംഗ് പരാജയപ്പെട്ടു"

BOOKING_EXPORT_COLUMNS = {
    'id': 'Booking ID',
    'name': 'Name',
    'mobile': 'Mobile',
    'panchayath_name': 'Panchayath',
    'food_option_name': 'Food Item',
    'unit_price': 'Unit Price',
    'quantity': 'Quantity',
    'total_amount': 'Total Amount',
    'status': 'Status',
    'created_at': 'Booked At',
}


def cached_food_options():
    return get_or_fetch('food_options', lambda: list(FoodOptionSerializer(FoodOption.objects.all(), many=True).data))


def filtered_bookings(params):
    bookings = FoodCouponBooking.objects.select_related('panchayath', 'food_option')
    if is_positive_integer(params.get('panchayath_id')):
        bookings = bookings.filter(panchayath_id=int(params['panchayath_id']))
    if is_positive_integer(params.get('food_option_id')):
        bookings = bookings.filter(food_option_id=int(params['food_option_id']))
    search = (params.get('search') or '').strip()
    if search:
        bookings = bookings.filter(Q(name__icontains=search) | Q(mobile__icontains=search))
    return bookings


class FoodOptionView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'food_coupon'

    def get(self, request):
        return Response({
            'status': 'success',
            'message': 'Food options fetched successfully',
            'data': cached_food_options()
        }, status=status.HTTP_200_OK)

    def post(self, request):
        serializer = FoodOptionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        option = serializer.save()
        invalidate('food_options')
        record_admin_activity(request, 'create_food_option', f'Food option {option.name} added')
        return Response({
            'status': 'success',
            'message': 'Food option added successfully',
            'data': FoodOptionSerializer(option).data
        }, status=status.HTTP_201_CREATED)

    def put(self, request):
        option_id = request.data.get('food_option_id')
        if not is_positive_integer(option_id):
            return Response({'status': 'fail', 'message': 'Valid food_option_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        option = FoodOption.objects.filter(id=int(option_id)).first()
        if not option:
            return Response({'status': 'fail', 'message': 'Food option not found'}, status=status.HTTP_404_NOT_FOUND)

        serializer = FoodOptionSerializer(option, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        serializer.save()
        invalidate('food_options')
        record_admin_activity(request, 'update_food_option', f'Food option {option.name} updated')
        return Response({
            'status': 'success',
            'message': 'Food option updated successfully',
            'data': serializer.data
        }, status=status.HTTP_200_OK)

    def delete(self, request):
        option_id = request.data.get('food_option_id') or request.query_params.get('food_option_id')
        if not is_positive_integer(option_id):
            return Response({'status': 'fail', 'message': 'Valid food_option_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        option = FoodOption.objects.filter(id=int(option_id)).first()
        if not option:
            return Response({'status': 'fail', 'message': 'Food option not found'}, status=status.HTTP_404_NOT_FOUND)
        if option.bookings.exists():
            return Response({
                'status': 'fail',
                'message': 'This food option has bookings. Deactivate it instead.'
            }, status=status.HTTP_409_CONFLICT)

        option.delete()
        invalidate('food_options')
        record_admin_activity(request, 'delete_food_option', f'Food option {option_id} deleted', payload={'food_option_id': option_id})
        return Response({'status': 'success', 'message': 'Food option deleted successfully'}, status=status.HTTP_200_OK)


class FoodCouponBookingView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'food_coupon'

    def get(self, request):
        try:
            bookings = filtered_bookings(request.query_params)
            rows = list(FoodCouponBookingSerializer(bookings, many=True).data)
            totals = bookings.aggregate(quantity=Sum('quantity'), amount=Sum('total_amount'))

            error, page = paginate_rows(request, rows)
            if error:
                return error
            return Response({
                'status': 'success',
                'message': 'Bookings fetched successfully' if rows else 'No bookings found',
                'data': {
                    **page,
                    'total_quantity': totals['quantity'] or 0,
                    'total_amount': str(ledger.money(totals['amount'])),
                }
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def put(self, request):
        """Edit a booking; the total follows the food option's price."""
        try:
            booking_id = request.data.get('booking_id')
            if not is_positive_integer(booking_id):
                return Response({'status': 'fail', 'message': 'Valid booking_id is required'}, status=status.HTTP_400_BAD_REQUEST)

            booking = FoodCouponBooking.objects.select_related('food_option').filter(id=int(booking_id)).first()
            if not booking:
                return Response({'status': 'fail', 'message': 'Booking not found'}, status=status.HTTP_404_NOT_FOUND)

            if 'name' in request.data:
                name = str(request.data.get('name') or '').strip()
                if not name:
                    return Response({'status': 'fail', 'message': 'Name cannot be empty'}, status=status.HTTP_400_BAD_REQUEST)
                booking.name = name

            if 'mobile' in request.data:
                mobile = str(request.data.get('mobile') or '').strip()
                if not validate_mobile_format(mobile):
                    return Response({'status': 'fail', 'message': 'Mobile number must be exactly 10 digits'}, status=status.HTTP_400_BAD_REQUEST)
                booking.mobile = mobile

            if 'panchayath_id' in request.data:
                panchayath = Panchayath.objects.filter(id=request.data.get('panchayath_id')).first() if is_positive_integer(request.data.get('panchayath_id')) else None
                if not panchayath:
                    return Response({'status': 'fail', 'message': 'Panchayath not found'}, status=status.HTTP_400_BAD_REQUEST)
                booking.panchayath = panchayath

            if 'food_option_id' in request.data:
                option = FoodOption.objects.filter(id=request.data.get('food_option_id')).first() if is_positive_integer(request.data.get('food_option_id')) else None
                if not option:
                    return Response({'status': 'fail', 'message': 'Food option not found'}, status=status.HTTP_400_BAD_REQUEST)
                booking.food_option = option

            if 'quantity' in request.data:
                if not is_positive_integer(request.data.get('quantity')):
                    return Response({'status': 'fail', 'message': 'Quantity must be at least 1'}, status=status.HTTP_400_BAD_REQUEST)
                booking.quantity = int(request.data.get('quantity'))

            booking.total_amount = ledger.money(booking.food_option.price * booking.quantity)
            booking.save()
            record_admin_activity(request, 'update_food_booking', f'Food coupon booking {booking.id} updated')
            return Response({
                'status': 'success',
                'message': 'Booking updated successfully',
                'data': FoodCouponBookingSerializer(booking).data
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def delete(self, request):
        booking_id = request.data.get('booking_id') or request.query_params.get('booking_id')
        if not is_positive_integer(booking_id):
            return Response({'status': 'fail', 'message': 'Valid booking_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        deleted, _ = FoodCouponBooking.objects.filter(id=int(booking_id)).delete()
        if not deleted:
            return Response({'status': 'fail', 'message': 'Booking not found'}, status=status.HTTP_404_NOT_FOUND)

        record_admin_activity(request, 'delete_food_booking', f'Food coupon booking {booking_id} deleted', payload={'booking_id': booking_id})
        return Response({'status': 'success', 'message': 'Booking deleted successfully'}, status=status.HTTP_200_OK)


class FoodCouponBookingExportView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'food_coupon'

    def get(self, request):
        try:
            rows = FoodCouponBookingSerializer(filtered_bookings(request.query_params), many=True).data
            if not rows:
                return Response({'status': 'fail', 'message': 'No bookings to export'}, status=status.HTTP_404_NOT_FOUND)

            file_url = export_rows_to_excel(rows, BOOKING_EXPORT_COLUMNS, 'food_coupon_bookings', sheet_title='Food Coupons')
            return Response({
                'status': 'success',
                'message': 'Bookings exported successfully',
                'data': {'file_url': request.build_absolute_uri(file_url), 'rows': len(rows)}
            }, status=status.HTTP_200_OK)
        except Exception as e:
            save_api_log(request, "FoodCoupon", dict(request.query_params), {"status": "error", "message": str(e)}, service_type="Booking Export")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class PublicFoodOptionListView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        rows = [r for r in cached_food_options() if r['is_active']]
        return Response({'status': 'success', 'message': 'Food options fetched successfully', 'data': rows}, status=status.HTTP_200_OK)


class PublicFoodCouponBookingView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        save_api_log(request, "PublicFoodCoupon", request.data, {"status": "in_progress"}, service_type="Food Coupon Booking")
        try:
            panchayath_id = request.data.get('panchayath_id')
            name = str(request.data.get('name') or '').strip()
            mobile = str(request.data.get('mobile') or '').strip()
            selections = request.data.get('items') or []

            if not is_positive_integer(panchayath_id) or not name or not mobile or not isinstance(selections, list) or not selections:
                return Response({'status': 'fail', 'message': MSG_FILL_ALL_FIELDS}, status=status.HTTP_400_BAD_REQUEST)
            if not validate_mobile_format(mobile):
                return Response({'status': 'fail', 'message': MSG_INVALID_MOBILE}, status=status.HTTP_400_BAD_REQUEST)

            panchayath = Panchayath.objects.filter(id=int(panchayath_id)).first()
            if not panchayath:
                return Response({'status': 'fail', 'message': MSG_BOOKING_FAILED, 'detail': 'Panchayath not found'}, status=status.HTTP_400_BAD_REQUEST)

            quantities = {}
            for selection in selections:
                option_id = selection.get('food_option_id') if isinstance(selection, dict) else None
                quantity = selection.get('quantity', 1) if isinstance(selection, dict) else None
                if not is_positive_integer(option_id) or not is_positive_integer(quantity):
                    return Response({'status': 'fail', 'message': MSG_FILL_ALL_FIELDS}, status=status.HTTP_400_BAD_REQUEST)
                quantities[int(option_id)] = quantities.get(int(option_id), 0) + int(quantity)

            options = {o.id: o for o in FoodOption.objects.filter(id__in=quantities, is_active=True)}
            if len(options) != len(quantities):
                return Response({'status': 'fail', 'message': MSG_BOOKING_FAILED, 'detail': 'Food option not available'}, status=status.HTTP_400_BAD_REQUEST)

            with transaction.atomic():
                bookings = FoodCouponBooking.objects.bulk_create([
                    FoodCouponBooking(
                        panchayath=panchayath,
                        food_option=options[option_id],
                        name=name,
                        mobile=mobile,
                        quantity=quantity,
                        total_amount=ledger.money(options[option_id].price * quantity),
                    )
                    for option_id, quantity in quantities.items()
                ])

            grand_total = sum((b.total_amount for b in bookings), Decimal('0'))
            response_data = {
                'status': 'success',
                'message': MSG_BOOKING_SUCCESS,
                'detail': MSG_BOOKING_SUCCESS_DETAIL,
                'data': {
                    'bookings': len(bookings),
                    'total_amount': str(ledger.money(grand_total)),
                }
            }
            save_api_log(request, "PublicFoodCoupon", request.data, response_data, service_type="Food Coupon Booking")
            return Response(response_data, status=status.HTTP_201_CREATED)
        except Exception as e:
            save_api_log(request, "PublicFoodCoupon", request.data, {"status": "error", "message": str(e)}, service_type="Food Coupon Booking")
            return Response({'status': 'error', 'message': MSG_BOOKING_FAILED, 'detail': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
