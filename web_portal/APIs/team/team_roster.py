from ...views import *


class TeamMemberView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'team'

    def get(self, request):
        try:
            rows = get_or_fetch('team', lambda: list(TeamMemberSerializer(TeamMember.objects.all(), many=True).data))

            member_type = request.query_params.get('member_type')
            if member_type:
                rows = [r for r in rows if r['member_type'] == member_type]

            search = request.query_params.get('search', '').strip().lower()
            if search:
                rows = [r for r in rows if search in r['name'].lower() or search in r['role'].lower()]

            error, page = paginate_rows(request, rows, order="asc")
            if error:
                return error

            return Response({
                'status': 'success',
                'message': 'Team members fetched successfully',
                'data': {
                    **page,
                    'officials': sum(1 for r in rows if r['member_type'] == 'official'),
                    'volunteers': sum(1 for r in rows if r['member_type'] == 'volunteer'),
                }
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def post(self, request):
        try:
            serializer = TeamMemberSerializer(data=request.data)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            member = serializer.save()
            invalidate('team')
            record_admin_activity(request, 'create_team_member', f'{member.get_member_type_display()} {member.name} added')
            return Response({
                'status': 'success',
                'message': 'Team member added successfully',
                'data': TeamMemberSerializer(member).data
            }, status=status.HTTP_201_CREATED)
        except Exception as e:
            save_api_log(request, "Team", request.data, {'status': 'error', 'message': str(e)}, service_type="Team Create")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def put(self, request):
        try:
            member_id = request.data.get('member_id')
            if not is_positive_integer(member_id):
                return Response({'status': 'fail', 'message': 'Valid member_id is required'}, status=status.HTTP_400_BAD_REQUEST)

            member = TeamMember.objects.filter(id=int(member_id)).first()
            if not member:
                return Response({'status': 'fail', 'message': 'Team member not found'}, status=status.HTTP_404_NOT_FOUND)

            serializer = TeamMemberSerializer(member, data=request.data, partial=True)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            serializer.save()
            invalidate('team')
            record_admin_activity(request, 'update_team_member', f'Team member {member.name} updated')
            return Response({
                'status': 'success',
                'message': 'Team member updated successfully',
                'data': serializer.data
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def delete(self, request):
        member_id = request.data.get('member_id') or request.query_params.get('member_id')
        if not is_positive_integer(member_id):
            return Response({'status': 'fail', 'message': 'Valid member_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        deleted, _ = TeamMember.objects.filter(id=int(member_id)).delete()
        if not deleted:
            return Response({'status': 'fail', 'message': 'Team member not found'}, status=status.HTTP_404_NOT_FOUND)

        invalidate('team')
        record_admin_activity(request, 'delete_team_member', f'Team member {member_id} deleted', payload={'member_id': member_id})
        return Response({'status': 'success', 'message': 'Team member deleted successfully'}, status=status.HTTP_200_OK)
