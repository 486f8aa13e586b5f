from ...views import *


class RegistrationView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'registrations'

    def get(self, request):
        try:
            rows = get_or_fetch('registrations', lambda: list(RegistrationSerializer(Registration.objects.all(), many=True).data))

            registration_type = request.query_params.get('registration_type')
            if registration_type:
                rows = [r for r in rows if r['registration_type'] == registration_type]

            search = request.query_params.get('search', '').strip().lower()
            if search:
                rows = [
                    r for r in rows
                    if search in r['name'].lower()
                    or search in r['receipt_number'].lower()
                    or search in (r['mobile'] or '')
                ]

            totals = ledger.registration_totals(rows)
            error, page = paginate_rows(request, rows)
            if error:
                return error
            return Response({
                'status': 'success',
                'message': 'Registrations fetched successfully' if rows else 'No registration receipts',
                'data': {**page, 'totals': {k: str(ledger.money(v)) for k, v in totals.items()}}
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def post(self, request):
        save_api_log(request, "Registrations", request.data, {"status": "in_progress"}, service_type="Registration")
        try:
            missing = enforce_required_fields(request.data, ['registration_type', 'name', 'amount'])
            if missing:
                return missing

            serializer = RegistrationSerializer(data=request.data)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            with transaction.atomic():
                registration = serializer.save(
                    receipt_number=generate_receipt_number('REG', Registration),
                )

            invalidate('registrations')
            record_admin_activity(request, 'create_registration', f'Registration {registration.receipt_number} for {registration.name}')
            response_data = {
                'status': 'success',
                'message': 'Registration recorded successfully',
                'data': RegistrationSerializer(registration).data
            }
            save_api_log(request, "Registrations", request.data, response_data, service_type="Registration")
            return Response(response_data, status=status.HTTP_201_CREATED)
        except Exception as e:
            save_api_log(request, "Registrations", request.data, {"status": "error", "message": str(e)}, service_type="Registration")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def delete(self, request):
        registration_id = request.data.get('registration_id') or request.query_params.get('registration_id')
        if not is_positive_integer(registration_id):
            return Response({'status': 'fail', 'message': 'Valid registration_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        deleted, _ = Registration.objects.filter(id=int(registration_id)).delete()
        if not deleted:
            return Response({'status': 'fail', 'message': 'Registration not found'}, status=status.HTTP_404_NOT_FOUND)

        invalidate('registrations')
        record_admin_activity(request, 'delete_registration', f'Registration {registration_id} deleted', payload={'registration_id': registration_id})
        return Response({'status': 'success', 'message': 'Registration deleted successfully'}, status=status.HTTP_200_OK)
