from ...views import *
from collections import OrderedDict


def returnable_quantities(bill):
    """
    Per item name, the bill lines still open for return as [unit price, remaining]
    pairs in billing order. Earlier returns are taken off the lines in the same order.
    """
    billed = OrderedDict()
    for item in ledger.bill_items(bill):
        billed.setdefault(item.get('name'), []).append(
            [ledger.to_decimal(item.get('price')), int(item.get('quantity') or 1)]
        )

    for previous in bill.sales_returns.all():
        for item in previous.items or []:
            if item.get('name') in billed:
                consume_lines(billed[item.get('name')], int(item.get('quantity') or 0))
    return billed


def consume_lines(lines, quantity):
    """Takes quantity off the lines in order; returns the amount at the prices billed."""
    amount = Decimal('0')
    for line in lines:
        if quantity <= 0:
            break
        taken = min(line[1], quantity)
        if taken <= 0:
            continue
        line[1] -= taken
        quantity -= taken
        amount += line[0] * taken
    return amount


class SalesReturnView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'billing'

    def get(self, request):
        try:
            bill_id = request.query_params.get('bill_id')
            stall_id = request.query_params.get('stall_id')

            returns = SalesReturn.objects.select_related('bill', 'stall')
            scope = ()
            if is_positive_integer(bill_id):
                returns = returns.filter(bill_id=int(bill_id))
                scope = ('bill', int(bill_id))
            elif is_positive_integer(stall_id):
                returns = returns.filter(stall_id=int(stall_id))
                scope = ('stall', int(stall_id))

            rows = get_or_fetch('sales_returns', lambda: list(SalesReturnSerializer(returns, many=True).data), *scope)
            error, page = paginate_rows(request, rows)
            if error:
                return error
            return Response({
                'status': 'success',
                'message': 'Sales returns fetched successfully' if rows else 'No sales returns',
                'data': {**page, 'total_return_amount': str(ledger.money(ledger.total_returns(rows)))}
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def post(self, request):
        save_api_log(request, "Billing", request.data, {"status": "in_progress"}, service_type="Sales Return")
        try:
            serializer = SalesReturnCreateSerializer(data=request.data)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
            data = serializer.validated_data

            merged = OrderedDict()
            for row in data['items']:
                merged[row['name']] = merged.get(row['name'], 0) + row['quantity']
            requested = [{'name': name, 'quantity': qty} for name, qty in merged.items() if qty > 0]
            if not requested:
                return Response({'status': 'fail', 'message': 'Enter a return quantity for at least one item'}, status=status.HTTP_400_BAD_REQUEST)

            with transaction.atomic():
                bill = BillingTransaction.objects.select_for_update().filter(id=data['bill_id']).first()
                if not bill:
                    return Response({'status': 'fail', 'message': 'Bill not found'}, status=status.HTTP_404_NOT_FOUND)

                available = returnable_quantities(bill)
                items, return_amount = [], Decimal('0')
                for row in requested:
                    if row['name'] not in available:
                        return Response({'status': 'fail', 'message': f"{row['name']} is not on this bill"}, status=status.HTTP_400_BAD_REQUEST)
                    lines = available[row['name']]
                    remaining = sum(line[1] for line in lines)
                    if row['quantity'] > remaining:
                        return Response({
                            'status': 'fail',
                            'message': f"Return quantity for {row['name']} cannot exceed {max(remaining, 0)}"
                        }, status=status.HTTP_400_BAD_REQUEST)

                    amount = consume_lines(lines, row['quantity'])
                    items.append({
                        'name': row['name'],
                        'quantity': row['quantity'],
                        'price': float(ledger.money(amount / row['quantity'])),
                        'amount': float(ledger.money(amount)),
                    })
                    return_amount += amount

                sales_return = SalesReturn.objects.create(
                    bill=bill,
                    stall_id=bill.stall_id,
                    return_number=generate_receipt_number('RET', SalesReturn, 'return_number'),
                    items=items,
                    return_amount=ledger.money(return_amount),
                    reason=data.get('reason') or None,
                    created_by=request.user,
                )

            invalidate('sales_returns', 'bills')
            record_admin_activity(request, 'create_sales_return', f'Return {sales_return.return_number} against {bill.receipt_number}')
            response_data = {
                'status': 'success',
                'message': 'Sales return recorded successfully',
                'data': SalesReturnSerializer(sales_return).data
            }
            save_api_log(request, "Billing", request.data, {'status': 'success', 'return_number': sales_return.return_number}, service_type="Sales Return")
            return Response(response_data, status=status.HTTP_201_CREATED)
        except Exception as e:
            save_api_log(request, "Billing", request.data, {"status": "error", "message": str(e)}, service_type="Sales Return")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
