from ...views import *


def cached_programs():
    return get_or_fetch('programs', lambda: list(ProgramSerializer(Program.objects.all(), many=True).data))


class ProgramManageView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'programs'

    def get(self, request):
        try:
            rows = cached_programs()
            search = request.query_params.get('search', '').strip().lower()
            if search:
                rows = [r for r in rows if search in r['name'].lower() or search in r['venue'].lower()]

            error, page = paginate_rows(request, rows, order="asc")
            if error:
                return error
            return Response({
                'status': 'success',
                'message': 'Programs fetched successfully' if rows else 'No programs found',
                'data': page
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def post(self, request):
        try:
            serializer = ProgramSerializer(data=request.data)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            program = serializer.save()
            invalidate('programs')
            record_admin_activity(request, 'create_program', f'Program {program.name} created')
            return Response({
                'status': 'success',
                'message': 'Program added successfully',
                'data': ProgramSerializer(program).data
            }, status=status.HTTP_201_CREATED)
        except Exception as e:
            save_api_log(request, "Programs", request.data, {'status': 'error', 'message': str(e)}, service_type="Program Create")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def put(self, request):
        try:
            program_id = request.data.get('program_id')
            if not is_positive_integer(program_id):
                return Response({'status': 'fail', 'message': 'Valid program_id is required'}, status=status.HTTP_400_BAD_REQUEST)

            program = Program.objects.filter(id=int(program_id)).first()
            if not program:
                return Response({'status': 'fail', 'message': 'Program not found'}, status=status.HTTP_404_NOT_FOUND)

            serializer = ProgramSerializer(program, data=request.data, partial=True)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            serializer.save()
            invalidate('programs')
            record_admin_activity(request, 'update_program', f'Program {program.name} updated')
            return Response({
                'status': 'success',
                'message': 'Program updated successfully',
                'data': serializer.data
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def delete(self, request):
        program_id = request.data.get('program_id') or request.query_params.get('program_id')
        if not is_positive_integer(program_id):
            return Response({'status': 'fail', 'message': 'Valid program_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        deleted, _ = Program.objects.filter(id=int(program_id)).delete()
        if not deleted:
            return Response({'status': 'fail', 'message': 'Program not found'}, status=status.HTTP_404_NOT_FOUND)

        invalidate('programs')
        record_admin_activity(request, 'delete_program', f'Program {program_id} deleted', payload={'program_id': program_id})
        return Response({'status': 'success', 'message': 'Program deleted successfully'}, status=status.HTTP_200_OK)


class PublicProgramListView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({
            'status': 'success',
            'message': 'Programs fetched successfully',
            'data': cached_programs()
        }, status=status.HTTP_200_OK)
