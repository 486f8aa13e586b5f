from ...views import *


def cached_panchayaths():
    return get_or_fetch(
        'panchayaths',
        lambda: list(PanchayathSerializer(Panchayath.objects.annotate(num_wards=Count('wards')), many=True).data),
    )


def cached_wards(panchayath_id):
    return get_or_fetch(
        'wards',
        lambda: list(WardSerializer(
            Ward.objects.select_related('panchayath').filter(panchayath_id=panchayath_id), many=True
        ).data),
        'panchayath', panchayath_id,
    )


class PanchayathManageView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'survey'

    def get(self, request):
        try:
            rows = cached_panchayaths()
            search = request.query_params.get('search', '').strip().lower()
            if search:
                rows = [r for r in rows if search in r['name'].lower()]

            error, page = paginate_rows(request, rows, order="asc")
            if error:
                return error
            return Response({
                'status': 'success',
                'message': 'Panchayaths fetched successfully',
                'data': page
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def post(self, request):
        save_api_log(request, "Survey", request.data, {"status": "in_progress"}, service_type="Panchayath Creation")
        try:
            name = str(request.data.get('name') or '').strip()
            ward_count = request.data.get('ward_count')

            if not name:
                return Response({'status': 'fail', 'message': 'Panchayath name is required'}, status=status.HTTP_400_BAD_REQUEST)
            if not is_positive_integer(ward_count):
                return Response({'status': 'fail', 'message': 'Ward count must be at least 1'}, status=status.HTTP_400_BAD_REQUEST)
            if Panchayath.objects.filter(name__iexact=name).exists():
                return Response({'status': 'fail', 'message': 'A panchayath with this name already exists'}, status=status.HTTP_409_CONFLICT)

            ward_count = int(ward_count)
            with transaction.atomic():
                panchayath = Panchayath.objects.create(name=name)
                Ward.objects.bulk_create([
                    Ward(panchayath=panchayath, ward_number=str(number))
                    for number in range(1, ward_count + 1)
                ])

            invalidate('panchayaths')
            record_admin_activity(request, 'create_panchayath', f'Panchayath {name} created with {ward_count} wards')
            response_data = {
                'status': 'success',
                'message': f'Panchayath created with {ward_count} wards',
                'data': {
                    'id': panchayath.id,
                    'name': panchayath.name,
                    'ward_count': ward_count,
                }
            }
            save_api_log(request, "Survey", request.data, response_data, service_type="Panchayath Creation")
            return Response(response_data, status=status.HTTP_201_CREATED)
        except Exception as e:
            save_api_log(request, "Survey", request.data, {"status": "error", "message": str(e)}, service_type="Panchayath Creation")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def put(self, request):
        panchayath_id = request.data.get('panchayath_id')
        name = str(request.data.get('name') or '').strip()
        if not is_positive_integer(panchayath_id) or not name:
            return Response({'status': 'fail', 'message': 'panchayath_id and name are required'}, status=status.HTTP_400_BAD_REQUEST)

        panchayath = Panchayath.objects.filter(id=int(panchayath_id)).first()
        if not panchayath:
            return Response({'status': 'fail', 'message': 'Panchayath not found'}, status=status.HTTP_404_NOT_FOUND)
        if Panchayath.objects.filter(name__iexact=name).exclude(id=panchayath.id).exists():
            return Response({'status': 'fail', 'message': 'A panchayath with this name already exists'}, status=status.HTTP_409_CONFLICT)

        panchayath.name = name
        panchayath.save(update_fields=['name'])
        invalidate('panchayaths')
        record_admin_activity(request, 'update_panchayath', f'Panchayath {panchayath.id} renamed to {name}')
        return Response({
            'status': 'success',
            'message': 'Panchayath updated successfully',
            'data': PanchayathSerializer(panchayath).data
        }, status=status.HTTP_200_OK)

    def delete(self, request):
        panchayath_id = request.data.get('panchayath_id') or request.query_params.get('panchayath_id')
        if not is_positive_integer(panchayath_id):
            return Response({'status': 'fail', 'message': 'Valid panchayath_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        panchayath = Panchayath.objects.filter(id=int(panchayath_id)).first()
        if not panchayath:
            return Response({'status': 'fail', 'message': 'Panchayath not found'}, status=status.HTTP_404_NOT_FOUND)

        try:
            panchayath.delete()
        except ProtectedError:
            return Response({
                'status': 'fail',
                'message': 'Panchayath has food coupon bookings and cannot be deleted'
            }, status=status.HTTP_409_CONFLICT)

        invalidate('panchayaths', 'stalls')
        record_admin_activity(request, 'delete_panchayath', f'Panchayath {panchayath_id} deleted', payload={'panchayath_id': panchayath_id})
        return Response({'status': 'success', 'message': 'Panchayath and its wards deleted'}, status=status.HTTP_200_OK)


class WardManageView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'survey'

    def get(self, request):
        panchayath_id = request.query_params.get('panchayath_id')
        if not is_positive_integer(panchayath_id):
            return Response({'status': 'fail', 'message': 'Valid panchayath_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'status': 'success',
            'message': 'Wards fetched successfully',
            'data': cached_wards(int(panchayath_id))
        }, status=status.HTTP_200_OK)

    def put(self, request):
        ward_id = request.data.get('ward_id')
        if not is_positive_integer(ward_id):
            return Response({'status': 'fail', 'message': 'Valid ward_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        ward = Ward.objects.filter(id=int(ward_id)).first()
        if not ward:
            return Response({'status': 'fail', 'message': 'Ward not found'}, status=status.HTTP_404_NOT_FOUND)

        ward_number = str(request.data.get('ward_number') or '').strip()
        if ward_number and ward_number != ward.ward_number:
            if Ward.objects.filter(panchayath_id=ward.panchayath_id, ward_number=ward_number).exists():
                return Response({'status': 'fail', 'message': 'This ward number already exists in the panchayath'}, status=status.HTTP_409_CONFLICT)
            ward.ward_number = ward_number

        if 'ward_name' in request.data:
            ward.ward_name = str(request.data.get('ward_name') or '').strip() or None

        ward.save()
        invalidate('wards', scope=('panchayath', ward.panchayath_id))
        invalidate('panchayaths')
        record_admin_activity(request, 'update_ward', f'Ward {ward.id} updated')
        return Response({
            'status': 'success',
            'message': 'Ward updated successfully',
            'data': WardSerializer(ward).data
        }, status=status.HTTP_200_OK)

    def delete(self, request):
        ward_id = request.data.get('ward_id') or request.query_params.get('ward_id')
        if not is_positive_integer(ward_id):
            return Response({'status': 'fail', 'message': 'Valid ward_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        ward = Ward.objects.filter(id=int(ward_id)).first()
        if not ward:
            return Response({'status': 'fail', 'message': 'Ward not found'}, status=status.HTTP_404_NOT_FOUND)

        panchayath_id = ward.panchayath_id
        ward.delete()
        invalidate('wards', scope=('panchayath', panchayath_id))
        invalidate('panchayaths')
        record_admin_activity(request, 'delete_ward', f'Ward {ward_id} deleted', payload={'ward_id': ward_id})
        return Response({'status': 'success', 'message': 'Ward deleted successfully'}, status=status.HTTP_200_OK)


class PublicPanchayathListView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        rows = [{'id': r['id'], 'name': r['name']} for r in cached_panchayaths()]
        return Response({'status': 'success', 'message': 'Panchayaths fetched successfully', 'data': rows}, status=status.HTTP_200_OK)


class PublicWardListView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        panchayath_id = request.query_params.get('panchayath_id')
        if not is_positive_integer(panchayath_id):
            return Response({'status': 'fail', 'message': 'Valid panchayath_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        rows = [
            {'id': r['id'], 'ward_number': r['ward_number'], 'ward_name': r['ward_name']}
            for r in cached_wards(int(panchayath_id))
        ]
        return Response({'status': 'success', 'message': 'Wards fetched successfully', 'data': rows}, status=status.HTTP_200_OK)
