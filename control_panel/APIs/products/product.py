from ...views import *


def cached_products(stall_id=None):
    def fetch():
        products = Product.objects.select_related('stall')
        if stall_id:
            products = products.filter(stall_id=stall_id)
        return list(ProductSerializer(products, many=True).data)
    return get_or_fetch('products', fetch, *(('stall', stall_id) if stall_id else ()))


class ProductManageView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'food_court'

    def get(self, request):
        try:
            stall_id = request.query_params.get('stall_id')
            if stall_id and not is_positive_integer(stall_id):
                return Response({'status': 'fail', 'message': 'Invalid stall_id'}, status=status.HTTP_400_BAD_REQUEST)

            rows = cached_products(int(stall_id) if stall_id else None)
            if request.query_params.get('active_only') == 'true':
                rows = [r for r in rows if r['is_active']]

            search = request.query_params.get('search', '').strip().lower()
            if search:
                rows = [r for r in rows if search in r['product_name'].lower()]

            error, page = paginate_rows(request, rows, order="asc")
            if error:
                return error
            return Response({
                'status': 'success',
                'message': 'Products fetched successfully' if rows else 'No products found',
                'data': page
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def post(self, request):
        try:
            serializer = ProductSerializer(data=request.data)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            product = serializer.save()
            invalidate('products')
            record_admin_activity(request, 'create_product', f'Product {product.product_name} added to {product.stall.counter_name}')
            return Response({
                'status': 'success',
                'message': 'Product added successfully',
                'data': ProductSerializer(product).data
            }, status=status.HTTP_201_CREATED)
        except Exception as e:
            save_api_log(request, "FoodCourt", request.data, {"status": "error", "message": str(e)}, service_type="Product Creation")
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def put(self, request):
        try:
            product_id = request.data.get('product_id')
            if not is_positive_integer(product_id):
                return Response({'status': 'fail', 'message': 'Valid product_id is required'}, status=status.HTTP_400_BAD_REQUEST)

            product = Product.objects.filter(id=int(product_id)).first()
            if not product:
                return Response({'status': 'fail', 'message': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)

            serializer = ProductSerializer(product, data=request.data, partial=True)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            serializer.save()
            invalidate('products')
            record_admin_activity(request, 'update_product', f'Product {product.product_name} updated')
            return Response({
                'status': 'success',
                'message': 'Product updated successfully',
                'data': serializer.data
            }, status=status.HTTP_200_OK)
        except Exception as e:
            return Response({'status': 'error', 'message': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def delete(self, request):
        product_id = request.data.get('product_id') or request.query_params.get('product_id')
        if not is_positive_integer(product_id):
            return Response({'status': 'fail', 'message': 'Valid product_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        deleted, _ = Product.objects.filter(id=int(product_id)).delete()
        if not deleted:
            return Response({'status': 'fail', 'message': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)

        invalidate('products')
        record_admin_activity(request, 'delete_product', f'Product {product_id} deleted', payload={'product_id': product_id})
        return Response({'status': 'success', 'message': 'Product deleted successfully'}, status=status.HTTP_200_OK)
