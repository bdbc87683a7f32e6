import ssl
import urllib.request



class ExtendedMethodRequest(urllib.request.Request):
    GET = 'GET'
    HEAD = 'HEAD'
    POST = 'POST'
    PUT = 'PUT'
    DELETE = 'DELETE'


class ExtendedMethodHTTPRedirectHandler(urllib.request.HTTPRedirectHandler):
    def redirect_request(self, req, fp, code, msg, headers, newurl):
        """
        Follow redirects for every verb the REST clients use, keeping the verb
        and the payload (the stock handler only re-issues GET and HEAD).
        """
        m = req.get_method()
        if (code in (301, 302, 303, 307) and m in ("GET", "HEAD")
                or code in (301, 302, 303) and m in ("POST", "PUT", "DELETE")):
            newurl = newurl.replace(' ', '%20')
            return ExtendedMethodRequest(newurl,
                           data=req.data,
                           headers=req.headers,
                           origin_req_host=req.origin_req_host,
                           unverifiable=True,
                           method=m)
        raise urllib.request.HTTPError(req.full_url, code, msg, headers, fp)


def get_http_handler(mode, debuglevel=0):
    if mode == 'http':
        return urllib.request.HTTPHandler(debuglevel=debuglevel)
    elif mode == 'https':
        return urllib.request.HTTPSHandler(debuglevel=debuglevel,
            context=ssl.create_default_context())
    raise KeyError(mode)


def get_opener(method, server, proxy=None, debuglevel=0):
    handler = [get_http_handler(method, debuglevel)]
    if '|' in server:
        server, http_proxy = server.split('|', 1)
        handler.append(urllib.request.ProxyHandler({method: http_proxy}))
    handler.append(ExtendedMethodHTTPRedirectHandler)
    opener = urllib.request.build_opener(*handler)
    opener.server = server
    return opener
