from ...views import *

MSG_NAME_REQUIRED = "പേര് നൽകുക"
MSG_INVALID_MOBILE = "സാധുവായ മൊബൈൽ നമ്പർ നൽകുക"
MSG_PANCHAYATH_REQUIRED = "പഞ്ചായത്ത് തിരഞ്ഞെടുക്കുക"
MSG_WARD_REQUIRED = "വാർഡ് തിരഞ്ഞെടുക്കുക"
MSG_DUPLICATE_MOBILE = "ഈ മൊബൈൽ നമ്പർ ഉപയോഗിച്ച് ഇതിനകം ഒരു അപേക്ഷ സമർപ്പിച്ചിട്ടുണ്ട്."
MSG_SUBMITTED = "അപേക്ഷ സമർപ്പിച്ചു!"
MSG_SUBMITTED_DETAIL = "നിങ്ങളുടെ അപേക്ഷ വിജയകരമായി സമർപ്പിച്ചു."

ENQUIRY_EXPORT_COLUMNS = {
    'id': 'Enquiry ID',
    'name': 'Name',
    'mobile': 'Mobile',
    'panchayath_name': 'Panchayath',
    'ward_label': 'Ward',
    'status': 'Status',
    'created_at': 'Submitted At',
}


def is_field_visible(field, responses):
    """A conditional field only counts when its parent holds the trigger value."""
    parent_id = field.show_conditional_on_id
    if parent_id is None:
        return True
    return str(responses.get(str(parent_id), '')) == (field.conditional_value or '')


def clean_products(raw_products):
    """
    Returns (products, error_message). Each product needs a name, both
    prices and a selling unit; the brand name is kept only when has_brand.
    """
    if not isinstance(raw_products, list) or not raw_products:
        # the form always carries at least one product row
        raw_products = [{}]

    products = []
    for index, raw in enumerate(raw_products, start=1):
        raw = raw if isinstance(raw, dict) else {}
        name = str(raw.get('product_name') or '').strip()
        cost_price = parse_amount(raw.get('cost_price'))
        selling_price = parse_amount(raw.get('selling_price'))
        selling_unit = str(raw.get('selling_unit') or '').strip()

        if not name:
            return None, f"ഉൽപ്പന്നം {index}: ഉൽപ്പന്നത്തിന്റെ പേര് നൽകുക"
        if cost_price is None:
            return None, f"ഉൽപ്പന്നം {index}: Cost Price നൽകുക"
        if selling_price is None:
            return None, f"ഉൽപ്പന്നം {index}: Selling Price നൽകുക"
        if not selling_unit:
            return None, f"ഉൽപ്പന്നം {index}: വിൽക്കുന്ന രീതി തിരഞ്ഞെടുക്കുക"

        has_brand = raw.get('has_brand') in (True, 'true', 'yes', 1, '1')
        products.append({
            'product_name': name,
            'cost_price': str(cost_price),
            'selling_price': str(selling_price),
            'selling_unit': selling_unit,
            'has_brand': has_brand,
            'brand_name': (str(raw.get('brand_name') or '').strip() or None) if has_brand else None,
        })
    return products, None


def filtered_enquiries(params):
    enquiries = StallEnquiry.objects.select_related('panchayath', 'ward__panchayath')
    if params.get('status') in ('pending', 'verified'):
        enquiries = enquiries.filter(status=params['status'])
    if is_positive_integer(params.get('panchayath_id')):
        enquiries = enquiries.filter(panchayath_id=int(params['panchayath_id']))
    search = (params.get('search') or '').strip()
    if search:
        enquiries = enquiries.filter(Q(name__icontains=search) | Q(mobile__icontains=search))
    return enquiries


class PublicStallEnquiryView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        save_api_log(request, "PublicStallEnquiry", request.data, {"status": "in_progress"}, service_type="Stall Enquiry")
        try:
            name = str(request.data.get('name') or '').strip()
            mobile = digits_only(request.data.get('mobile'))
            panchayath_id = request.data.get('panchayath_id')
            ward_id = request.data.get('ward_id')
            answers = request.data.get('responses') or {}

            if not name:
                return Response({'status': 'fail', 'message': MSG_NAME_REQUIRED}, status=status.HTTP_400_BAD_REQUEST)
            if not 10 <= len(mobile) <= 15:
                return Response({'status': 'fail', 'message': MSG_INVALID_MOBILE}, status=status.HTTP_400_BAD_REQUEST)
            if not is_positive_integer(panchayath_id):
                return Response({'status': 'fail', 'message': MSG_PANCHAYATH_REQUIRED}, status=status.HTTP_400_BAD_REQUEST)
            if not is_positive_integer(ward_id):
                return Response({'status': 'fail', 'message': MSG_WARD_REQUIRED}, status=status.HTTP_400_BAD_REQUEST)

            panchayath = Panchayath.objects.filter(id=int(panchayath_id)).first()
            if not panchayath:
                return Response({'status': 'fail', 'message': MSG_PANCHAYATH_REQUIRED}, status=status.HTTP_400_BAD_REQUEST)
            ward = Ward.objects.filter(id=int(ward_id), panchayath=panchayath).first()
            if not ward:
                return Response({'status': 'fail', 'message': MSG_WARD_REQUIRED}, status=status.HTTP_400_BAD_REQUEST)

            if not isinstance(answers, dict):
                return Response({'status': 'fail', 'message': 'responses must be an object keyed by field id'}, status=status.HTTP_400_BAD_REQUEST)
            answers = {str(k): v for k, v in answers.items() if k != 'products'}

            for field in StallEnquiryField.objects.filter(is_active=True):
                if not field.is_required or not is_field_visible(field, answers):
                    continue
                value = answers.get(str(field.id))
                if value is None or (isinstance(value, str) and not value.strip()) or value == []:
                    return Response({'status': 'fail', 'message': f"{field.field_label} നൽകുക"}, status=status.HTTP_400_BAD_REQUEST)

            products, error = clean_products(request.data.get('products'))
            if error:
                return Response({'status': 'fail', 'message': error}, status=status.HTTP_400_BAD_REQUEST)

            if StallEnquiry.objects.filter(mobile=mobile).exists():
                return Response({'status': 'fail', 'message': MSG_DUPLICATE_MOBILE}, status=status.HTTP_409_CONFLICT)

            try:
                with transaction.atomic():
                    enquiry = StallEnquiry.objects.create(
                        name=name,
                        mobile=mobile,
                        panchayath=panchayath,
                        ward=ward,
                        responses={**answers, 'products': products},
                    )
            except IntegrityError:
                return Response({'status': 'fail', 'message': MSG_DUPLICATE_MOBILE}, status=status.HTTP_409_CONFLICT)

            response_data = {
                'status': 'success',
                'message': MSG_SUBMITTED,
                'detail': MSG_SUBMITTED_DETAIL,
                'data': {'enquiry_id': enquiry.id}
            }
            save_api_log(request, "PublicStallEnquiry", request.data, response_data, service_type="Stall Enquiry")
            return Response(response_data, status=status.HTTP_201_CREATED)
        except Exception as e:
            save_api_log(request, "PublicStallEnquiry", request.data, {"status": "error", "message": str(e)}, service_type="Stall Enquiry")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class StallEnquiryView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'stall_enquiry'

    def get(self, request):
        try:
            enquiry_id = request.query_params.get('enquiry_id')
            if enquiry_id:
                if not is_positive_integer(enquiry_id):
                    return Response({'status': 'fail', 'message': 'Invalid enquiry_id'}, status=status.HTTP_400_BAD_REQUEST)
                enquiry = StallEnquiry.objects.select_related('panchayath', 'ward__panchayath').filter(id=int(enquiry_id)).first()
                if not enquiry:
                    return Response({'status': 'fail', 'message': 'Enquiry not found'}, status=status.HTTP_404_NOT_FOUND)
                return Response({
                    'status': 'success',
                    'message': 'Enquiry fetched successfully',
                    'data': StallEnquirySerializer(enquiry).data
                }, status=status.HTTP_200_OK)

            enquiries = filtered_enquiries(request.query_params)
            try:
                enquiries = apply_date_range_filter(request.query_params, enquiries, 'created_at')
            except ValidationError as ve:
                return Response({'status': 'fail', 'message': ve.messages[0]}, status=status.HTTP_400_BAD_REQUEST)

            rows = list(StallEnquirySerializer(enquiries, many=True).data)
            error, page = paginate_rows(request, rows)
            if error:
                return error

            counts = StallEnquiry.objects.aggregate(
                total=Count('id'),
                pending=Count('id', filter=Q(status='pending')),
                verified=Count('id', filter=Q(status='verified')),
            )
            return Response({
                'status': 'success',
                'message': 'Enquiries fetched successfully' if rows else 'No enquiries found',
                'data': {**page, 'counts': counts}
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def delete(self, request):
        enquiry_id = request.data.get('enquiry_id') or request.query_params.get('enquiry_id')
        if not is_positive_integer(enquiry_id):
            return Response({'status': 'fail', 'message': 'Valid enquiry_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        deleted, _ = StallEnquiry.objects.filter(id=int(enquiry_id)).delete()
        if not deleted:
            return Response({'status': 'fail', 'message': 'Enquiry not found'}, status=status.HTTP_404_NOT_FOUND)

        record_admin_activity(request, 'delete_stall_enquiry', f'Stall enquiry {enquiry_id} deleted', payload={'enquiry_id': enquiry_id})
        return Response({'status': 'success', 'message': 'Enquiry deleted successfully'}, status=status.HTTP_200_OK)


class StallEnquiryVerifyView(APIView):
    """PUT {enquiry_id, action: verify|unverify}"""
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'stall_enquiry'

    def put(self, request):
        enquiry_id = request.data.get('enquiry_id')
        action = request.data.get('action', 'verify')
        if not is_positive_integer(enquiry_id):
            return Response({'status': 'fail', 'message': 'Valid enquiry_id is required'}, status=status.HTTP_400_BAD_REQUEST)
        if action not in ('verify', 'unverify'):
            return Response({'status': 'fail', 'message': 'action must be verify or unverify'}, status=status.HTTP_400_BAD_REQUEST)

        enquiry = StallEnquiry.objects.filter(id=int(enquiry_id)).first()
        if not enquiry:
            return Response({'status': 'fail', 'message': 'Enquiry not found'}, status=status.HTTP_404_NOT_FOUND)

        enquiry.status = 'verified' if action == 'verify' else 'pending'
        enquiry.save(update_fields=['status'])
        record_admin_activity(request, f'{action}_stall_enquiry', f'Stall enquiry from {enquiry.name} marked {enquiry.status}')
        return Response({
            'status': 'success',
            'message': f'Enquiry marked as {enquiry.status}',
            'data': StallEnquirySerializer(enquiry).data
        }, status=status.HTTP_200_OK)


class StallEnquiryExportView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'stall_enquiry'

    def get(self, request):
        try:
            enquiries = StallEnquirySerializer(filtered_enquiries(request.query_params), many=True).data
            if not enquiries:
                return Response({'status': 'fail', 'message': 'No enquiries to export'}, status=status.HTTP_404_NOT_FOUND)

            labels = {f.id: f.field_label for f in StallEnquiryField.objects.all()}
            columns = dict(ENQUIRY_EXPORT_COLUMNS)
            columns.update({label: label for label in labels.values()})
            columns['products'] = 'Products'

            rows = []
            for enquiry in enquiries:
                responses = enquiry['responses'] or {}
                row = {**enquiry, **flatten_responses(responses, labels)}
                row['products'] = '; '.join(
                    f"{p.get('product_name')} ({p.get('selling_unit')}) cost {p.get('cost_price')} / sell {p.get('selling_price')}"
                    + (f" [{p['brand_name']}]" if p.get('brand_name') else '')
                    for p in responses.get('products') or []
                )
                rows.append(row)

            file_url = export_rows_to_excel(rows, columns, 'stall_enquiries', sheet_title='Stall Enquiries')
            record_admin_activity(request, 'export_stall_enquiries', f'{len(rows)} stall enquiries exported')
            return Response({
                'status': 'success',
                'message': 'Enquiries exported successfully',
                'data': {'file_url': request.build_absolute_uri(file_url), 'rows': len(rows)}
            }, status=status.HTTP_200_OK)
        except Exception as e:
            save_api_log(request, "StallEnquiry", dict(request.query_params), {"status": "error", "message": str(e)}, service_type="Enquiry Export")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
