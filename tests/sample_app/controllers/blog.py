from pyweave import Controller, Response


class Blog(Controller):
    def index(self):
        return self.show("blog", {"title": "Blog Index - All Posts"})

    def show_post(self, id):
        return self.show("blog", {"title": f"Showing blog post ID: {id}"})

    def comment(self, post_id, comment_id):
        return f"post={post_id} comment={comment_id}"

    def store(self):
        return Response(status_code=201, body="created")

    def update(self, id):
        return f"updated {id}"

    def broken(self):
        raise RuntimeError("<b>boom</b>")

    def missing_view(self):
        return self.show("../nope")
