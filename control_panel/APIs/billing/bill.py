from ...views import *


def as_json_number(value):
    return float(ledger.money(value))


def build_bill_items(stall, item_inputs):
    """
    Snapshots each requested product into a bill line. Returns
    (items, subtotal, total) or raises ValidationError with a user message.
    """
    product_ids = {row['product_id'] for row in item_inputs}
    products = {
        p.id: p for p in Product.objects.filter(stall=stall, id__in=product_ids, is_active=True)
    }
    missing = product_ids - set(products)
    if missing:
        raise ValidationError(f"Products not available for this stall: {sorted(missing)}")

    items, subtotal, total = [], Decimal('0'), Decimal('0')
    for row in item_inputs:
        product = products[row['product_id']]
        quantity = row['quantity']
        mrp = product.selling_price
        price = row.get('price')
        price = mrp if price is None else price
        if price > mrp:
            raise ValidationError(f"Price for {product.product_name} cannot exceed the MRP of {mrp}")

        items.append({
            'product_id': product.id,
            'name': product.product_name,
            'quantity': quantity,
            'price': as_json_number(price),
            'original_price': as_json_number(mrp),
            'discount': as_json_number((mrp - price) * quantity),
            'event_margin': as_json_number(product.event_margin),
        })
        subtotal += mrp * quantity
        total += price * quantity
    return items, ledger.money(subtotal), ledger.money(total)


def verification_failed(request):
    password = request.data.get('verification_password')
    return not password or not request.user.check_password(password)


class BillManageView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'billing'

    def get(self, request):
        try:
            params = request.query_params
            bill_id = params.get('bill_id')
            if bill_id:
                if not is_positive_integer(bill_id):
                    return Response({'status': 'fail', 'message': 'Invalid bill_id'}, status=status.HTTP_400_BAD_REQUEST)
                bill = BillingTransaction.objects.select_related('stall', 'created_by').filter(id=int(bill_id)).first()
                if not bill:
                    return Response({'status': 'fail', 'message': 'Bill not found'}, status=status.HTTP_404_NOT_FOUND)
                return Response({
                    'status': 'success',
                    'message': 'Bill fetched successfully',
                    'data': BillingTransactionSerializer(bill).data
                }, status=status.HTTP_200_OK)

            stall_id = params.get('stall_id')
            if stall_id and not is_positive_integer(stall_id):
                return Response({'status': 'fail', 'message': 'Invalid stall_id'}, status=status.HTTP_400_BAD_REQUEST)

            def fetch(queryset=None):
                bills = queryset if queryset is not None else BillingTransaction.objects.all()
                bills = bills.select_related('stall', 'created_by').prefetch_related('sales_returns')
                if stall_id:
                    bills = bills.filter(stall_id=int(stall_id))
                return list(BillingTransactionSerializer(bills, many=True).data)

            if params.get('filter_type') or params.get('start_date'):
                try:
                    rows = fetch(apply_date_range_filter(params, BillingTransaction.objects.all()))
                except ValidationError as ve:
                    return Response({'status': 'fail', 'message': ve.messages[0]}, status=status.HTTP_400_BAD_REQUEST)
            else:
                rows = get_or_fetch('bills', fetch, *(('stall', int(stall_id)) if stall_id else ()))

            for key in ('status', 'delivery_status'):
                if params.get(key):
                    rows = [r for r in rows if r[key] == params[key]]

            search = params.get('search', '').strip().lower()
            if search:
                rows = [
                    r for r in rows
                    if search in r['receipt_number'].lower()
                    or search in (r['customer_name'] or '').lower()
                    or search in (r['customer_mobile'] or '')
                ]

            error, page = paginate_rows(request, rows)
            if error:
                return error
            return Response({
                'status': 'success',
                'message': 'Bills fetched successfully' if rows else 'No billing receipts',
                'data': page
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def post(self, request):
        save_api_log(request, "Billing", request.data, {"status": "in_progress"}, service_type="Bill Creation")
        try:
            serializer = BillCreateSerializer(data=request.data)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
            data = serializer.validated_data

            with transaction.atomic():
                stall = Stall.objects.select_for_update().filter(id=data['stall_id']).first()
                if not stall:
                    return Response({'status': 'fail', 'message': 'Stall not found'}, status=status.HTTP_404_NOT_FOUND)
                if not stall.is_verified:
                    return Response({'status': 'fail', 'message': 'Only verified stalls can be billed'}, status=status.HTTP_400_BAD_REQUEST)

                items, subtotal, total = build_bill_items(stall, data['items'])
                last_serial = stall.bills.aggregate(last=Max('serial_number'))['last'] or 0
                bill = BillingTransaction.objects.create(
                    stall=stall,
                    receipt_number=generate_receipt_number('RCP', BillingTransaction),
                    serial_number=last_serial + 1,
                    items=items,
                    subtotal=subtotal,
                    total=total,
                    customer_name=data.get('customer_name') or None,
                    customer_mobile=data.get('customer_mobile') or None,
                    created_by=request.user,
                )

            invalidate('bills')
            record_admin_activity(request, 'create_bill', f'Bill {bill.receipt_number} created for {stall.counter_name}')
            response_data = {
                'status': 'success',
                'message': 'Bill created successfully',
                'data': BillingTransactionSerializer(bill).data
            }
            save_api_log(request, "Billing", request.data, {'status': 'success', 'receipt_number': bill.receipt_number}, service_type="Bill Creation")
            return Response(response_data, status=status.HTTP_201_CREATED)
        except ValidationError as ve:
            return Response({'status': 'fail', 'message': ve.messages[0]}, status=status.HTTP_400_BAD_REQUEST)
        except Exception as e:
            save_api_log(request, "Billing", request.data, {"status": "error", "message": str(e)}, service_type="Bill Creation")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def put(self, request):
        """Verification-gated edit of the customer details and the total."""
        try:
            if verification_failed(request):
                return Response({'status': 'fail', 'message': 'Verification failed. Re-enter your password.'}, status=status.HTTP_403_FORBIDDEN)

            serializer = BillEditSerializer(data=request.data)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
            data = serializer.validated_data

            bill = BillingTransaction.objects.filter(id=data['bill_id']).first()
            if not bill:
                return Response({'status': 'fail', 'message': 'Bill not found'}, status=status.HTTP_404_NOT_FOUND)

            update_fields = ['updated_at']
            if 'customer_name' in data:
                bill.customer_name = data['customer_name'] or None
                update_fields.append('customer_name')
            if 'customer_mobile' in data:
                bill.customer_mobile = data['customer_mobile'] or None
                update_fields.append('customer_mobile')
            if 'total' in data:
                bill.total = data['total']
                bill.subtotal = data['total']
                update_fields += ['total', 'subtotal']

            bill.save(update_fields=update_fields)
            invalidate('bills')
            record_admin_activity(
                request, 'edit_bill', f'Bill {bill.receipt_number} edited',
                payload={k: v for k, v in request.data.items() if k != 'verification_password'},
            )
            return Response({
                'status': 'success',
                'message': 'Bill updated successfully',
                'data': BillingTransactionSerializer(bill).data
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def delete(self, request):
        save_api_log(request, "Billing", request.data, {"status": "in_progress"}, service_type="Bill Deletion")
        try:
            bill_id = request.data.get('bill_id')
            if not is_positive_integer(bill_id):
                return Response({'status': 'fail', 'message': 'Valid bill_id is required'}, status=status.HTTP_400_BAD_REQUEST)

            bill = BillingTransaction.objects.filter(id=int(bill_id)).first()
            if not bill:
                return Response({'status': 'fail', 'message': 'Bill not found'}, status=status.HTTP_404_NOT_FOUND)
            if verification_failed(request):
                return Response({'status': 'fail', 'message': 'Verification failed. Re-enter your password.'}, status=status.HTTP_403_FORBIDDEN)

            receipt_number = bill.receipt_number
            with transaction.atomic():
                returns_removed = bill.sales_returns.all().delete()[0]
                bill.delete()

            invalidate('bills')
            record_admin_activity(request, 'delete_bill', f'Bill {receipt_number} deleted', payload={'bill_id': bill_id})
            response_data = {
                'status': 'success',
                'message': 'Bill deleted successfully',
                'data': {'receipt_number': receipt_number, 'sales_returns_removed': returns_removed}
            }
            save_api_log(request, "Billing", {'bill_id': bill_id}, response_data, service_type="Bill Deletion")
            return Response(response_data, status=status.HTTP_200_OK)
        except Exception as e:
            save_api_log(request, "Billing", request.data, {"status": "error", "message": str(e)}, service_type="Bill Deletion")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class BillMarkPaidView(APIView):
    """Cash received: pending -> paid, never back."""
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'billing'

    def put(self, request):
        bill_id = request.data.get('bill_id')
        if not is_positive_integer(bill_id):
            return Response({'status': 'fail', 'message': 'Valid bill_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        with transaction.atomic():
            bill = BillingTransaction.objects.select_for_update().filter(id=int(bill_id)).first()
            if not bill:
                return Response({'status': 'fail', 'message': 'Bill not found'}, status=status.HTTP_404_NOT_FOUND)
            if bill.status == 'paid':
                return Response({'status': 'fail', 'message': 'Bill is already marked as paid'}, status=status.HTTP_409_CONFLICT)
            bill.status = 'paid'
            bill.save(update_fields=['status', 'updated_at'])

        invalidate('bills')
        record_admin_activity(request, 'mark_bill_paid', f'Cash received for {bill.receipt_number}')
        return Response({
            'status': 'success',
            'message': 'Bill marked as paid',
            'data': BillingTransactionSerializer(bill).data
        }, status=status.HTTP_200_OK)
