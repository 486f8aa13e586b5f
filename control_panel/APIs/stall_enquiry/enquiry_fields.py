from ...views import *


def cached_enquiry_fields():
    return get_or_fetch(
        'stall_enquiry_fields',
        lambda: list(StallEnquiryFieldSerializer(StallEnquiryField.objects.all(), many=True).data),
    )


class StallEnquiryFieldView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'stall_enquiry'

    def get(self, request):
        rows = cached_enquiry_fields()
        if request.query_params.get('active_only') == 'true':
            rows = [r for r in rows if r['is_active']]
        return Response({
            'status': 'success',
            'message': 'Form fields fetched successfully' if rows else 'No form fields configured',
            'data': rows
        }, status=status.HTTP_200_OK)

    def post(self, request):
        try:
            serializer = StallEnquiryFieldSerializer(data=request.data)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            extra = {}
            if 'display_order' not in request.data:
                last = StallEnquiryField.objects.aggregate(last=Max('display_order'))['last']
                extra['display_order'] = (last or 0) + 1

            field = serializer.save(**extra)
            invalidate('stall_enquiry_fields')
            record_admin_activity(request, 'create_enquiry_field', f'Enquiry field "{field.field_label}" added')
            return Response({
                'status': 'success',
                'message': 'Form field added successfully',
                'data': StallEnquiryFieldSerializer(field).data
            }, status=status.HTTP_201_CREATED)
        except Exception as e:
            save_api_log(request, "StallEnquiry", request.data, {"status": "error", "message": str(e)}, service_type="Enquiry Field")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def put(self, request):
        try:
            field_id = request.data.get('field_id')
            if not is_positive_integer(field_id):
                return Response({'status': 'fail', 'message': 'Valid field_id is required'}, status=status.HTTP_400_BAD_REQUEST)

            field = StallEnquiryField.objects.filter(id=int(field_id)).first()
            if not field:
                return Response({'status': 'fail', 'message': 'Form field not found'}, status=status.HTTP_404_NOT_FOUND)

            serializer = StallEnquiryFieldSerializer(field, data=request.data, partial=True)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            serializer.save()
            invalidate('stall_enquiry_fields')
            record_admin_activity(request, 'update_enquiry_field', f'Enquiry field "{field.field_label}" updated')
            return Response({
                'status': 'success',
                'message': 'Form field updated successfully',
                'data': serializer.data
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def delete(self, request):
        field_id = request.data.get('field_id') or request.query_params.get('field_id')
        if not is_positive_integer(field_id):
            return Response({'status': 'fail', 'message': 'Valid field_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        deleted, _ = StallEnquiryField.objects.filter(id=int(field_id)).delete()
        if not deleted:
            return Response({'status': 'fail', 'message': 'Form field not found'}, status=status.HTTP_404_NOT_FOUND)

        invalidate('stall_enquiry_fields')
        record_admin_activity(request, 'delete_enquiry_field', f'Enquiry field {field_id} deleted', payload={'field_id': field_id})
        return Response({'status': 'success', 'message': 'Form field deleted successfully'}, status=status.HTTP_200_OK)


class StallEnquiryFieldReorderView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'stall_enquiry'

    def put(self, request):
        order = request.data.get('order')
        if not isinstance(order, list) or not order or not all(is_positive_integer(i) for i in order):
            return Response({'status': 'fail', 'message': 'order must be a list of field ids'}, status=status.HTTP_400_BAD_REQUEST)

        ids = [int(i) for i in order]
        if len(set(ids)) != len(ids):
            return Response({'status': 'fail', 'message': 'order contains duplicate field ids'}, status=status.HTTP_400_BAD_REQUEST)

        fields = {f.id: f for f in StallEnquiryField.objects.filter(id__in=ids)}
        unknown = [i for i in ids if i not in fields]
        if unknown:
            return Response({'status': 'fail', 'message': f'Unknown field ids: {unknown}'}, status=status.HTTP_404_NOT_FOUND)

        with transaction.atomic():
            for position, field_id in enumerate(ids, start=1):
                fields[field_id].display_order = position
            StallEnquiryField.objects.bulk_update(list(fields.values()), ['display_order'])

        invalidate('stall_enquiry_fields')
        record_admin_activity(request, 'reorder_enquiry_fields', 'Enquiry form fields reordered')
        return Response({
            'status': 'success',
            'message': 'Form fields reordered successfully',
            'data': cached_enquiry_fields()
        }, status=status.HTTP_200_OK)


class PublicStallEnquiryFieldListView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        rows = [r for r in cached_enquiry_fields() if r['is_active']]
        return Response({'status': 'success', 'message': 'Form fields fetched successfully', 'data': rows}, status=status.HTTP_200_OK)
