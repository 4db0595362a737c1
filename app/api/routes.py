from fastapi import APIRouter, HTTPException, Request, Response

from app.schemas.display import SelectionRequest

router = APIRouter()


def _controller(request: Request):
    controller = request.app.state.controller
    if controller is None:
        raise HTTPException(status_code=503, detail='QUOTE_PIPELINE_NOT_CONFIGURED')
    return controller


def _on_main(request: Request, fn, *args):
    return request.app.state.main_queue.call(fn, *args)


@router.get('/health')
def health(request: Request):
    return {
        'status': 'ok',
        'configured': request.app.state.controller is not None,
        'main_queue_running': request.app.state.main_queue.running,
    }


@router.get('/companies')
def list_companies(request: Request):
    view = request.app.state.view
    directory = _on_main(request, view.directory)
    return [entry.model_dump() for entry in directory.entries()]


@router.post('/companies/reload', status_code=202)
def reload_companies(request: Request):
    controller = _controller(request)
    _on_main(request, controller.load_directory)
    return {'accepted': True}


def _apply_selection(controller, req: SelectionRequest) -> dict:
    if req.company_name:
        changed = controller.select_company(req.company_name)
    else:
        changed = controller.select(req.symbol)
    return {'changed': changed, 'selected_symbol': controller.selected_symbol}


@router.post('/selection', status_code=202)
def select_company(req: SelectionRequest, request: Request):
    controller = _controller(request)
    if not req.company_name and not (req.symbol and req.symbol.strip()):
        raise HTTPException(status_code=422, detail='COMPANY_NAME_OR_SYMBOL_REQUIRED')
    try:
        return _on_main(request, _apply_selection, controller, req)
    except KeyError:
        raise HTTPException(status_code=404, detail='UNKNOWN_COMPANY')
    except ValueError:
        raise HTTPException(status_code=422, detail='INVALID_SYMBOL')


@router.post('/quote/refresh', status_code=202)
def refresh_quote(request: Request):
    controller = _controller(request)
    try:
        _on_main(request, controller.refresh_quote)
    except LookupError:
        raise HTTPException(status_code=409, detail='NO_COMPANY_SELECTED')
    return {'accepted': True}


@router.get('/display')
def get_display(request: Request):
    view = request.app.state.view
    return _on_main(request, view.snapshot).model_dump()


@router.get('/logo')
def get_logo(request: Request):
    view = request.app.state.view
    image = _on_main(request, view.logo_image)
    if image is None:
        raise HTTPException(status_code=404, detail='NO_LOGO')
    data, content_type = image
    return Response(content=data, media_type=content_type)


@router.delete('/notifications')
def dismiss_notifications(request: Request):
    view = request.app.state.view
    return {'dismissed': _on_main(request, view.dismiss_notifications)}


@router.get('/metrics')
def get_metrics(request: Request):
    controller = _controller(request)
    return _on_main(request, controller.metrics)
